import logging

from ledger_bot.webhook import WebhookHandler

# Configure logging
logging.basicConfig(level=logging.INFO)


class handler(WebhookHandler):
    """Vercel serverless function handler"""
