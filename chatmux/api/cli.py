"""
Interactive terminal adapter for the chatmux turn router.

Architectural role:
- Exposes a single conversation over stdin/stdout.
- Delegates every turn to `chatmux.core.engine.TurnRouter`.

Request lifecycle (per user turn, CLI):
1. Read stdin.
2. Handle local control commands (`exit`/`quit`, `empty chat`/`clear chat`,
   `/undo`, `/pdf <path>`, `/clearpdf`, `/image <path> [question]`).
3. Route normal text to `TurnRouter.submit`.
4. Print the assistant message, including generated image URLs.

Input validation behavior:
- Empty input is ignored.
- `/pdf` and `/image` report unreadable paths without calling the router.

Error handling strategy:
- EOF and keyboard interrupts terminate the loop without traceback output.
- Turn failures are already assistant messages and print like any reply.

Side effects:
- Configures logging (DEBUG when `DEBUG=true`, otherwise WARNING).
- Reads local files named by `/pdf` and `/image`.
"""

from dotenv import load_dotenv

load_dotenv()

import os
import sys
import asyncio
import logging
import mimetypes

from chatmux.config import ClientConfig
from chatmux.core.engine import TurnRouter
from chatmux.core.messages import GeneratedImagePart, to_data_url


DEBUG = os.getenv("DEBUG") == "true"


# =========================================================
# UTF-8 SAFE OUTPUT
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (OSError, ValueError):
        pass


# =========================================================
# RENDERING
# =========================================================

def render_message(message) -> str:
    """Plain-text rendering of an assistant message."""
    lines = []
    text = message.text
    if text:
        lines.append(text)
    for part in message.content:
        if isinstance(part, GeneratedImagePart):
            lines.append(f"[image] {part.url}")
    return "\n".join(lines)


def read_file(path: str) -> bytes | None:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        print(f"Could not read {path}: {e}")
        return None


# =========================================================
# COMMANDS
# =========================================================

def handle_pdf(router: TurnRouter, path: str):
    data = read_file(path)
    if data is None:
        return None
    reply = asyncio.run(router.upload_pdf(data, os.path.basename(path), "application/pdf"))
    if reply is None:
        print("Only PDF files are supported.")
    return reply


def handle_image(router: TurnRouter, path: str, question: str):
    data = read_file(path)
    if data is None:
        return None
    mime_type = mimetypes.guess_type(path)[0] or "image/png"
    data_url = to_data_url(data, mime_type)
    if question:
        return asyncio.run(router.submit(question, images=[data_url]))
    return asyncio.run(router.explain_images([data_url]))


# =========================================================
# MAIN
# =========================================================

def main():
    """Run the CLI loop over one conversation."""
    logging.basicConfig(level=logging.DEBUG if DEBUG else logging.WARNING)

    router = TurnRouter(ClientConfig.from_env())

    print("chatmux started. (Type 'exit' to quit)")
    print("Commands: /undo, /pdf <path>, /clearpdf, /image <path> [question], clear chat")
    print("-" * 60)

    while True:

        try:
            question = input("You: ").strip()

        except EOFError:
            print("\nChat discarded (EOF received).")
            break

        except KeyboardInterrupt:
            print("\nOperation cancelled by user.")
            break

        if not question:
            continue

        lowered = question.lower()

        if lowered in ("exit", "quit"):
            print("Shutting down.")
            break

        if lowered in ("empty chat", "clear chat"):
            router.clear()
            print("Chat cleared.")
            continue

        if lowered == "/undo":
            if router.undo():
                print("Last exchange removed.")
            else:
                print("Nothing to undo.")
            continue

        if lowered == "/clearpdf":
            router.clear_pdf_context()
            print("PDF context cleared.")
            continue

        if lowered.startswith("/pdf"):
            parts = question.split(maxsplit=1)
            if len(parts) < 2:
                print("Usage: /pdf <path>")
                continue
            reply = handle_pdf(router, parts[1])

        elif lowered.startswith("/image"):
            parts = question.split(maxsplit=2)
            if len(parts) < 2:
                print("Usage: /image <path> [question]")
                continue
            reply = handle_image(router, parts[1], parts[2] if len(parts) > 2 else "")

        else:
            reply = asyncio.run(router.submit(question))

        if reply is None:
            continue

        print("\nAssistant:\n")
        print(render_message(reply))
        print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    main()
