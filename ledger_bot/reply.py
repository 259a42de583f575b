import logging

import requests

logger = logging.getLogger(__name__)

LINE_REPLY_URL = "https://api.line.me/v2/bot/message/reply"


class LineReplySender:
    """Send reply text through the LINE Messaging API"""

    def __init__(self, config):
        self.config = config

    def reply(self, reply_token, text):
        """Fire-and-forget: failures are logged, never raised"""
        if self.config.debug:
            logger.info(f"[debug] reply suppressed ({reply_token}): {text}")
            return

        headers = {"Authorization": f"Bearer {self.config.channel_access_token}"}
        payload = {
            "replyToken": reply_token,
            "messages": [{"type": "text", "text": text}]
        }

        try:
            resp = requests.post(LINE_REPLY_URL, json=payload, headers=headers, timeout=10)
            if resp.status_code != 200:
                logger.error(f"Failed to send reply: {resp.text}")
        except requests.RequestException as e:
            logger.error(f"Error sending LINE reply: {e}")
