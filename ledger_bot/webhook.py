from http.server import BaseHTTPRequestHandler
import base64
import hashlib
import hmac
import json
import logging

from ledger_bot.config import Config
from ledger_bot.reply import LineReplySender
from ledger_bot.service import LedgerService
from ledger_bot.store import SheetStore

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = 'X-Line-Signature'

_service = None


def get_service():
    """Lazily build the service from the environment, once per process"""
    global _service
    if _service is None:
        config = Config.from_env()
        _service = LedgerService(config, SheetStore(config), LineReplySender(config))
        logger.info("Ledger service initialized")
    return _service


def verify_signature(channel_secret, body, signature):
    """LINE signs the raw body with HMAC-SHA256 over the channel secret"""
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode('utf-8'), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode('utf-8')
    return hmac.compare_digest(expected, signature)


class WebhookHandler(BaseHTTPRequestHandler):
    """LINE webhook endpoint"""

    def _respond(self, status, body=None):
        self.send_response(status)
        if body is not None:
            self.send_header('Content-Type', 'application/json')
        self.end_headers()
        if body is not None:
            self.wfile.write(json.dumps(body).encode('utf-8'))

    def do_GET(self):
        """Health check endpoint"""
        self.send_response(200)
        self.send_header('Content-Type', 'text/plain')
        self.end_headers()
        self.wfile.write(b"Bot is Online")

    def do_POST(self):
        """Handle a LINE webhook delivery"""
        try:
            service = get_service()
            content_length = int(self.headers.get('Content-Length', 0))
            post_data = self.rfile.read(content_length)

            if not verify_signature(service.config.channel_secret, post_data,
                                    self.headers.get(SIGNATURE_HEADER)):
                logger.warning("Rejected webhook with a bad signature")
                self._respond(401, {"message": "Invalid signature"})
                return

            try:
                data = json.loads(post_data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON received")
                self._respond(400, {"message": "Invalid JSON"})
                return

            if not isinstance(data, dict) or not isinstance(data.get('events', []), list):
                logger.warning("Webhook body is not a LINE event payload")
                self._respond(400, {"message": "Invalid payload"})
                return

            events = data.get('events', [])
            logger.info(f"Received {len(events)} event(s)")

            failures = service.handle_events(events)
            if failures:
                logger.warning(f"{failures} of {len(events)} event(s) failed")

            self._respond(200, {"message": "OK"})

        except Exception as e:
            logger.error(f"Webhook handler error: {e}", exc_info=True)
            self._respond(500)
