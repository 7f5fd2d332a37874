"""Login for the rewind user session.

LOGIN_METHOD selects "qr" (default) or "phone"; PHONE and 2FA may be set in
.env to skip the prompts.
"""

import os
from getpass import getpass

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors


async def _login_with_qr(client: TelegramClient) -> None:
    login = await client.qr_login()
    qr = qrcode.QRCode(border=1)
    qr.add_data(login.url)
    qr.print_ascii(invert=True)
    await login.wait(timeout=120)


async def _login_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number: ").strip()
    await client.send_code_request(phone)
    await client.sign_in(phone=phone, code=input("Login code: ").strip())


async def authorize(client: TelegramClient) -> None:
    """Log the client in unless the stored session is still valid."""

    if await client.is_user_authorized():
        return

    load_dotenv()
    method = (os.getenv("LOGIN_METHOD") or "qr").strip().lower()
    if method not in {"qr", "phone"}:
        raise RuntimeError("LOGIN_METHOD must be 'qr' or 'phone'")
    try:
        if method == "phone":
            await _login_with_phone(client)
        else:
            await _login_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=os.getenv("2FA") or getpass("2FA password: "))
