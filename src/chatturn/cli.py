"""
CLI entrypoint for chatturn.

Examples:
    chatturn list-providers
    chatturn list-tools
    chatturn check --provider anthropic
    chatturn prompt --mode debug --error-file error.json
    chatturn chat --provider anthropic --mode debug --error-file error.json
    chatturn chat --provider local
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .agent import AgentConfig, TurnOrchestrator, TurnState
from .exceptions import ProviderConfigurationError
from .models import PROVIDERS, get_provider_info
from .prompt import CapturedError, PromptBuilder
from .providers import check_connection, create_provider
from .toolbox import KeyValueStore, NotificationChannel, build_default_registry, get_all_tools
from .types import ChatMode, Role

MODES = [mode.value for mode in ChatMode]


def _load_errors(path: Optional[str]) -> List[CapturedError]:
    if not path:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    records = data if isinstance(data, list) else [data]
    return [CapturedError.from_dict(record) for record in records]


def _load_sdk_config(path: Optional[str]) -> Optional[Dict[str, Any]]:
    if not path:
        return None
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"SDK configuration in {path} must be a JSON object")
    return data


def list_providers() -> None:
    for info in PROVIDERS.values():
        key = ", ".join(info.env_vars) if info.requires_api_key else "no API key needed"
        print(f"- {info.id}: {info.name} (default: {info.default_model}; {key})")
        print(f"    models: {', '.join(info.models)}")


def list_tools() -> None:
    for tool in get_all_tools():
        schema = tool.schema()
        print(f"- {schema['name']}: {schema['description']}")


def show_prompt(args: argparse.Namespace) -> None:
    errors = _load_errors(args.error_file)
    prompt = PromptBuilder().build(
        args.mode,
        error=errors[0] if errors else None,
        sdk_config=_load_sdk_config(args.sdk_config_file),
        tools=get_all_tools(),
    )
    print(prompt)


@contextlib.contextmanager
def _stop_on_interrupt(
    loop: asyncio.AbstractEventLoop, orchestrator: TurnOrchestrator
) -> Iterator[None]:
    """Route Ctrl-C to ``stop_generation`` while a reply is streaming."""
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.stop_generation)
    except (NotImplementedError, RuntimeError):
        # No signal handlers on this platform's loop; Ctrl-C ends the session instead.
        yield
        return
    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGINT)


def _build_orchestrator(
    args: argparse.Namespace,
) -> Tuple[TurnOrchestrator, List[CapturedError]]:
    errors = _load_errors(args.error_file)
    provider = create_provider(
        args.provider,
        model=args.model,
        base_url=args.base_url,
        request_timeout=args.request_timeout,
    )

    channel = NotificationChannel()
    channel.register(lambda message, type, duration: print(f"\n[{type}] {message}", flush=True))

    def on_text_delta(turn, text: str) -> None:
        print(text, end="", flush=True)

    def on_tool_end(turn, call, result) -> None:
        status = "ok" if result.ok else f"error: {result.error}"
        print(f"\n[tool {call.name}: {status}]", flush=True)

    config = AgentConfig(
        model=args.model,
        max_tokens=args.max_tokens,
        temperature=args.temperature,
        turn_timeout=args.timeout,
        show_tool_notices=args.show_tool_notices,
        hooks={"on_text_delta": on_text_delta, "on_tool_end": on_tool_end},
    )

    registry = build_default_registry(
        channel=channel,
        storage=KeyValueStore(args.storage_file),
        errors=lambda: errors,
        sdk_config=lambda: orchestrator.sdk_config,
    )
    orchestrator = TurnOrchestrator(provider, registry=registry, config=config)

    orchestrator.switch_mode(args.mode)
    orchestrator.selected_error = errors[0] if errors else None
    orchestrator.sdk_config = _load_sdk_config(args.sdk_config_file)
    return orchestrator, errors


async def run_check(args: argparse.Namespace) -> bool:
    """Send a short prompt to the configured provider and print the outcome."""
    info = get_provider_info(args.provider)
    provider = create_provider(
        args.provider,
        model=args.model,
        base_url=args.base_url,
        request_timeout=args.request_timeout,
    )
    try:
        ok, error = await check_connection(provider, model=args.model)
    finally:
        await provider.aclose()

    model = args.model or provider.default_model
    if ok:
        print(f"Connection to {info.name} ({model}) OK")
    else:
        print(f"Connection to {info.name} ({model}) failed: {error}", file=sys.stderr)
    return ok


def _print_history(messages: Any) -> None:
    for message in messages:
        speaker = {Role.USER: "You", Role.ASSISTANT: "AI", Role.SYSTEM: "--"}[message.role]
        print(f"{speaker}: {message.content}")


async def interactive_chat(args: argparse.Namespace) -> None:
    orchestrator, _ = _build_orchestrator(args)
    loop = asyncio.get_running_loop()

    print(
        f"Interactive chat ({orchestrator.active_mode.value} mode). "
        "Commands: /clear, /mode <debug|integration|general>, /history, exit.\n"
        "Press Ctrl-C while a reply is streaming to stop it.\n"
    )
    try:
        while True:
            try:
                user_input = (await loop.run_in_executor(None, input, "You: ")).strip()
            except EOFError:
                break
            if user_input.lower() in {"exit", "quit"}:
                break
            if not user_input:
                continue
            if user_input == "/clear":
                orchestrator.clear_messages()
                print("Conversation cleared.\n")
                continue
            if user_input.startswith("/mode"):
                _, _, name = user_input.partition(" ")
                try:
                    mode = orchestrator.switch_mode(name.strip())
                except ValueError:
                    print(f"Unknown mode '{name.strip()}'. Choose one of: {', '.join(MODES)}\n")
                    continue
                print(f"Switched to {mode.value} mode.\n")
                _print_history(orchestrator.messages)
                continue
            if user_input == "/history":
                _print_history(orchestrator.messages)
                continue

            print("AI: ", end="", flush=True)
            with _stop_on_interrupt(loop, orchestrator):
                turn = await orchestrator.send_message(user_input)
            if turn.state == TurnState.ERRORED:
                print(turn.final_text)
            elif turn.state == TurnState.ABORTED:
                print("\n[stopped]")
            elif not turn.primary_text and not turn.follow_up_text:
                print(turn.final_text)
            print()
    finally:
        await orchestrator.aclose()
    print("Goodbye!")


def _add_context_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--mode", choices=MODES, default=ChatMode.DEBUG.value, help="Chat mode")
    parser.add_argument("--error-file", help="JSON file with a captured error (or a list of them)")
    parser.add_argument("--sdk-config-file", help="JSON file with the detected SDK configuration")


def _add_provider_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        default="openai",
        help=f"Provider id ({'|'.join(PROVIDERS)})",
    )
    parser.add_argument("--model", help="Model name (default: the provider's default)")
    parser.add_argument(
        "--request-timeout", type=float, help="HTTP timeout in seconds (default: none)"
    )
    parser.add_argument("--base-url", help="Override the provider endpoint")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Streaming chat turns with tool calling")
    subparsers = parser.add_subparsers(dest="command", required=True)

    providers_parser = subparsers.add_parser("list-providers", help="List supported providers")
    providers_parser.set_defaults(func="providers")

    tools_parser = subparsers.add_parser("list-tools", help="List built-in tools")
    tools_parser.set_defaults(func="tools")

    prompt_parser = subparsers.add_parser("prompt", help="Print the composed system prompt")
    _add_context_arguments(prompt_parser)
    prompt_parser.set_defaults(func="prompt")

    check_parser = subparsers.add_parser("check", help="Test the connection to a provider")
    _add_provider_arguments(check_parser)
    check_parser.set_defaults(func="check")

    chat_parser = subparsers.add_parser("chat", help="Interactive streaming chat")
    _add_provider_arguments(chat_parser)
    _add_context_arguments(chat_parser)
    chat_parser.add_argument("--temperature", type=float, help="Sampling temperature")
    chat_parser.add_argument(
        "--max-tokens", type=int, default=4096, help="Max tokens per generation round"
    )
    chat_parser.add_argument("--timeout", type=float, help="Cancel a reply after this many seconds")
    chat_parser.add_argument(
        "--storage-file", help="JSON file backing the save_to_storage tool (default: in memory)"
    )
    chat_parser.add_argument(
        "--show-tool-notices", action="store_true", help="Record a notice for every tool used"
    )
    chat_parser.set_defaults(func="chat")

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.func == "providers":
            list_providers()
        elif args.func == "tools":
            list_tools()
        elif args.func == "prompt":
            show_prompt(args)
        elif args.func == "check":
            if not asyncio.run(run_check(args)):
                return 1
        elif args.func == "chat":
            asyncio.run(interactive_chat(args))
        else:
            parser.print_help()
    except ProviderConfigurationError as exc:
        print(exc, file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nGoodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
