from http.server import ThreadingHTTPServer
import logging

from ledger_bot.webhook import WebhookHandler, get_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    port = get_service().config.port
    server = ThreadingHTTPServer(('0.0.0.0', port), WebhookHandler)
    logger.info(f"Listening on port {port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == '__main__':
    main()
