"""Helpers for working with rewind chat keys.

A chat key is either `@username` (lowercased) or `chat_id:<id>`. Telegram
reports the same group under several numeric ids depending on the API path,
so configured keys are expanded to every equivalent form before matching.
"""

from __future__ import annotations

from typing import Any, Optional

CHAT_ID_PREFIX = "chat_id:"


def chat_key(username: Optional[str], chat_id: Optional[int]) -> Optional[str]:
    """Return the normalized key for a chat, preferring the public username."""

    if isinstance(username, str) and username:
        return f"@{username.lower()}"
    if chat_id is None:
        return None
    return f"{CHAT_ID_PREFIX}{chat_id}"


def parse_chat_id(source_key: str) -> Optional[int]:
    """Return the numeric id from a `chat_id:` key, or None for other keys."""

    if not source_key.startswith(CHAT_ID_PREFIX):
        return None
    try:
        return int(source_key[len(CHAT_ID_PREFIX):])
    except ValueError:
        return None


def _expand_chat_id_variants(raw_chat_id: int) -> set[int]:
    """Return equivalent chat id variants (peer id, chat id, channel id)."""

    variants: set[int] = {raw_chat_id}
    if raw_chat_id < 0:
        raw_text = str(raw_chat_id)
        if raw_text.startswith("-100"):
            # Channel/supergroup peer id: -100<channel_id>
            channel_part = raw_text[4:]
            if channel_part.isdigit():
                variants.add(int(channel_part))
        else:
            variants.add(abs(raw_chat_id))
        return variants

    # raw_chat_id is positive: add PeerChat and PeerChannel-style ids.
    variants.add(-raw_chat_id)
    variants.add(-1000000000000 - raw_chat_id)
    return variants


def expand_source_key_variants(source_key: str) -> set[str]:
    """Expand a source key to include equivalent chat_id variants."""

    if source_key.startswith("@"):
        return {source_key.lower()}
    raw_chat_id = parse_chat_id(source_key)
    if raw_chat_id is None:
        return {source_key}
    return {f"{CHAT_ID_PREFIX}{variant}" for variant in _expand_chat_id_variants(raw_chat_id)}


def keys_for_chat(chat: Any, chat_id: Optional[int]) -> set[str]:
    """Return every key a chat could be configured under."""

    keys: set[str] = set()
    username = getattr(chat, "username", None)
    username_key = chat_key(username, None)
    if username_key:
        keys.add(username_key)
    if chat_id is not None:
        keys.update(expand_source_key_variants(f"{CHAT_ID_PREFIX}{chat_id}"))
    return keys
