"""Application entry point for the rewind watcher."""

from __future__ import annotations

import argparse
import logging
import os
from functools import partial
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint
from telethon import events, utils

import settings
from adapters.sqlite_storage import SQLiteContentStore
from adapters.telegram_mapper import classify_deleted, classify_new_message, is_basic_group_source
from adapters.telegram_notifier import TelegramNotifier
from client import build_client
from core.errors import StorageUnavailable
from core.models import ContentKind
from core.processor import RecallProcessor
from core.resolver import RecallResolver
from core.retention import RetentionSweeper
from core.session import SessionContext, StaticDestination
from core.source_keys import CHAT_ID_PREFIX, chat_key, expand_source_key_variants, parse_chat_id
from core.worker import EventWorker
from get_session import authorize

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/rewind.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        level=level,
        handlers=handlers or None,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _entity_ref(key: str) -> Any:
    """Turn a chat key into something client.get_entity accepts."""

    chat_id = parse_chat_id(key)
    return chat_id if chat_id is not None else key


def _open_store() -> SQLiteContentStore:
    store = SQLiteContentStore(settings.STORAGE.db_path)
    try:
        store.init_db()
    except StorageUnavailable:
        LOGGER.exception("Content store unavailable; refusing to start")
        raise SystemExit(1)

    if settings.STORAGE.wipe_on_start:
        store.wipe()
        LOGGER.info("Content store wiped")
    else:
        # Without the startup wipe only recalls keep the tables bounded.
        LOGGER.warning(
            "Storage wipe disabled: carrying over %s texts and %s images",
            store.count(ContentKind.TEXT),
            store.count(ContentKind.IMAGE),
        )
    return store


async def _resolve_source(client) -> tuple[set[str], bool]:
    """Return the monitored chat's keys and whether it is a basic group."""

    keys = set(settings.SOURCE_KEYS)
    try:
        entity = await client.get_entity(_entity_ref(str(settings.SOURCE)))
    except (ValueError, TypeError):
        LOGGER.warning("Could not resolve source %s; matching on the configured key only", settings.SOURCE)
        return keys, is_basic_group_source(str(settings.SOURCE))
    keys |= expand_source_key_variants(f"{CHAT_ID_PREFIX}{utils.get_peer_id(entity)}")
    return keys, is_basic_group_source(str(settings.SOURCE), entity)


async def _build_session(client) -> SessionContext:
    session = SessionContext(await client.get_me(), settings.DESTINATION_STRATEGY)

    strategy = settings.DESTINATION_STRATEGY
    if isinstance(strategy, StaticDestination):
        try:
            entity = await client.get_entity(_entity_ref(strategy.name))
        except (ValueError, TypeError) as exc:
            raise RuntimeError(f"Destination chat not found: {strategy.name}") from exc
        session.resolve(entity)
    else:
        LOGGER.info("Waiting for sender %s to post %r", strategy.trigger_sender, strategy.keyword)
    return session


async def _serve(client, store: SQLiteContentStore) -> None:
    session = await _build_session(client)
    source_keys, basic_group = await _resolve_source(client)

    sweeper = RetentionSweeper(store, settings.RETENTION)
    notifier = TelegramNotifier(client, session, parse_mode=settings.PARSE_MODE)
    processor = RecallProcessor(store=store, resolver=RecallResolver(store, sweeper), notifier=notifier)
    worker = EventWorker(processor)
    worker.start()

    # Handlers never await before enqueueing: Telethon runs each update in its
    # own task, and the queue must keep transport order.
    @client.on(events.NewMessage())
    async def on_new_message(event) -> None:
        try:
            if session.observe(event.chat_id, event.sender_id, event.raw_text or ""):
                return
            worker.submit_nowait(partial(classify_new_message, event.message, source_keys))
        except Exception:
            LOGGER.exception("Error while queueing message")

    @client.on(events.MessageDeleted())
    async def on_message_deleted(event) -> None:
        try:
            for chat_event in classify_deleted(event, source_keys, accept_unscoped=basic_group):
                worker.submit_nowait(chat_event)
        except Exception:
            LOGGER.exception("Error while queueing deletion")

    LOGGER.info("Client connected. Watching %s for recalls...", settings.SOURCE)
    try:
        await client.run_until_disconnected()
    finally:
        await worker.stop()
        LOGGER.info(
            "Worker stopped: processed=%s, skipped=%s, failed=%s",
            worker.processed,
            worker.skipped,
            worker.failed,
        )


def _run() -> None:
    tprint("REWIND", "tarty-1", space=1)
    _configure_logging()
    LOGGER.info("Starting rewind")
    store = _open_store()

    client = build_client()
    try:
        client.loop.run_until_complete(client.connect())
        client.loop.run_until_complete(authorize(client))
        client.loop.run_until_complete(_serve(client, store))
    finally:
        store.close()


async def _list_group_dialogs(client) -> None:
    found = False
    async for dialog in client.iter_dialogs():
        if dialog.is_user:
            continue
        found = True
        key = chat_key(getattr(dialog.entity, "username", None), dialog.id)
        print(f"{dialog.name} | {key}")
    if not found:
        print("No group dialogs found.")


def _discover() -> None:
    client = build_client()

    async def _run_discover() -> None:
        await client.connect()
        await authorize(client)
        await _list_group_dialogs(client)
        await client.disconnect()

    client.loop.run_until_complete(_run_discover())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="rewind")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Start the watcher")
    subparsers.add_parser("discover", help="List group chats and their keys for config.json")

    args = parser.parse_args(argv)
    if args.command == "discover":
        _discover()
        return
    _run()


if __name__ == "__main__":
    main()
