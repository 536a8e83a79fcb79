"""
Response body builders for the chat relay.

The public chat contract is deliberately small: ``{"reply": ...}`` on
success and ``{"error": ...}`` on failure.
"""


def chat_error_body(message: str) -> dict:
    """Body for a failed chat turn, as the browser client expects it."""
    return {"error": message}


def chat_reply_body(reply: str) -> dict:
    """Body for a successful chat turn."""
    return {"reply": reply}
