from __future__ import annotations

_MODEL_TIP = " Tip: Use the 'list_models' or 'select_models' tool to check which models are available and what inputs they accept."


def _looks_like_model_or_auth_issue(text: str) -> bool:
    """Best-effort detection for auth/model issues from provider errors."""
    if not text:
        return False
    lower = text.lower()

    keywords = [
        # auth/credentials
        "api token",
        "unauthorized",
        "unauthenticated",
        "forbidden",
        "permission",
        "credentials",
        "401",
        "403",
        # billing/quota
        "billing",
        "payment required",
        "402",
        # model routing/input mismatch
        "not found",
        "404",
        "422",
        "invalid input",
        "unprocessable",
        "does not exist",
        "version",
    ]

    return any(k in lower for k in keywords)


def augment_with_model_tip(message: str) -> str:
    """Append a model-discovery tip to the message when appropriate."""
    if not message:
        return message
    if _MODEL_TIP.strip() in message:
        return message
    if _looks_like_model_or_auth_issue(message):
        return message.rstrip() + _MODEL_TIP
    return message


__all__ = ["augment_with_model_tip"]
