# =============================================================================
# main.py  —  Interactive console for the Media Assistant tools
# =============================================================================
#
# HOW TO RUN:
#   python main.py            interactive console
#   python main.py oauth      one-off Google OAuth flow (prints refresh token)
#
# CONSOLE COMMANDS:
#   tools                         list every tool and its arguments
#   <tool> {json args}            invoke a tool, e.g.
#                                   get_ad_spend {"customer_id": "123-456-7890"}
#   oauth                         run the Google OAuth consent flow
#   token                         check that a usable access token exists
#   quit                          leave
#
#   Tool calls go through the same dispatcher the MCP server uses, so what
#   you see here is exactly what an MCP client would get back.
# =============================================================================

import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

# Load .env BEFORE settings are read
load_dotenv()

from core.auth import exchange_code_for_token, generate_auth_url, get_valid_access_token
from core.config import Settings, load_settings
from core.errors import MediaAssistantError
from tools.registry import ToolDispatcher, build_dispatcher

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def parse_command(line: str) -> tuple[str, dict]:
    """Split "<name> {json}" into (name, args).  No JSON means no args."""
    name, _, rest = line.strip().partition(" ")
    rest = rest.strip()
    if not rest:
        return name, {}
    args = json.loads(rest)
    if not isinstance(args, dict):
        raise ValueError("Tool arguments must be a JSON object")
    return name, args


def describe_tools(dispatcher: ToolDispatcher) -> str:
    lines = []
    for descriptor in dispatcher.list_tools():
        params = ", ".join(
            f"{name}{'*' if spec.required else ''}"
            for name, spec in descriptor.input_schema.items()
        )
        lines.append(f"  {descriptor.name}({params})\n      {descriptor.description}")
    return "\n".join(lines)


async def run_oauth_flow(settings: Settings) -> None:
    """Walk the user through consent and print the refresh token."""
    if not settings.google_client_id or not settings.google_client_secret:
        print("⚠️  Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET first.")
        return

    print("\n1. Open this URL and approve access:\n")
    print(f"   {generate_auth_url(settings.google_client_id)}\n")
    code = input("2. Paste the authorization code: ").strip()
    if not code:
        print("No code entered.")
        return

    tokens = await exchange_code_for_token(
        code, settings.google_client_id, settings.google_client_secret
    )
    print("\n✅ Tokens received.")
    print(f"   GOOGLE_REFRESH_TOKEN={tokens.get('refresh_token', '')}")
    print("   Add it to your .env (and as GOOGLE_ADS_REFRESH_TOKEN for the Ads API).")


async def run_console():
    settings = load_settings()
    dispatcher = build_dispatcher(settings)

    print("=" * 70)
    print("  MEDIA ASSISTANT")
    print("  ClickUp + Google Ads tools over FastMCP")
    print("=" * 70)
    print(f"\n{len(dispatcher.list_tools())} tools available. Type 'tools' to list them,")
    print("'<tool> {json}' to call one, or 'quit' to exit.\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 > ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break

        if not user_input:
            continue

        if user_input == "tools":
            print(describe_tools(dispatcher))
            continue

        try:
            if user_input == "oauth":
                await run_oauth_flow(settings)
                continue
            if user_input == "token":
                token = await get_valid_access_token(settings)
                print(f"✅ Access token available ({token[:8]}...)")
                continue

            name, args = parse_command(user_input)
        except (MediaAssistantError, ValueError) as exc:
            print(f"⚠️  {exc}")
            continue

        result = await dispatcher.invoke(name, args)
        print(json.dumps(result, indent=2, default=str))


def cli():
    if sys.argv[1:] == ["oauth"]:
        asyncio.run(run_oauth_flow(load_settings()))
    else:
        asyncio.run(run_console())


if __name__ == "__main__":
    cli()
