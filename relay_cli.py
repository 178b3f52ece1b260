"""
A terminal client for the Relay service.

The transcript lives here, not on the server: every turn posts the whole
conversation to /api/chat and appends the streamed reply to it.
"""
import json
import os
from typing import Any, Dict, List, Optional

import requests
import typer
from prompt_toolkit import prompt as ptk_prompt
from prompt_toolkit.formatted_text import FormattedText
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table

# --- Configuration ---
API_BASE_URL = os.getenv("RELAY_API_URL", "http://127.0.0.1:8080/api")
DONE = "[DONE]"


# --- Rich Console Initialization ---
console = Console()
app = typer.Typer(
    name="relay-cli",
    help="A terminal client for the Relay service.",
    add_completion=False,
)


def parse_sse_line(line: bytes | str) -> Optional[Any]:
    """`data: {...}` -> dict, `data: [DONE]` -> DONE, anything else -> None."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    if not line.startswith("data:"):
        return None
    payload = line[len("data:") :].strip()
    if payload == DONE:
        return DONE
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        return None


# --- API Interaction Functions ---

def get_available_models() -> List[Dict[str, Any]]:
    """Fetches the list of available models from the service."""
    try:
        response = requests.get(f"{API_BASE_URL}/models")
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        console.print(f"[bold red]Error:[/bold red] Could not connect to the service at {API_BASE_URL}.")
        console.print("Please ensure the Relay service is running: [bold]python -m relay_service.app[/bold]")
        console.print(f"Details: {e}")
        raise typer.Exit(1)


def select_model(model_name: Optional[str]) -> str:
    """Guides the user to select a model if one isn't provided."""
    models = get_available_models()
    names = [m["name"] for m in models]
    if model_name:
        if model_name in names:
            return model_name
        console.print(f"[bold red]Error:[/bold red] Model '{model_name}' not found.")
        raise typer.Exit(1)

    if not models:
        console.print("[bold red]Error:[/bold red] No models available. Check the provider API keys in .env.")
        raise typer.Exit(1)

    table = Table(title="Available Models", border_style="blue")
    table.add_column("#", style="bold cyan")
    table.add_column("Model")
    table.add_column("Provider", style="dim")
    table.add_column("Tools", justify="center")
    for i, m in enumerate(models):
        table.add_row(str(i + 1), m["label"], m["provider"], "✓" if m.get("tools") else "")
    console.print(table)

    while True:
        choice_str = console.input("\nPlease enter the number of the model you want to use [default=1]: ")
        try:
            choice = int(choice_str.strip() or "1")
        except ValueError:
            console.print("[red]Invalid input. Please enter a number.[/red]")
            continue
        if 1 <= choice <= len(models):
            return names[choice - 1]
        console.print(f"[red]Invalid choice. Please enter a number between 1 and {len(models)}.[/red]")


def stream_reply(messages: List[Dict[str, Any]], model_name: str, debug: bool = False) -> str:
    """Post the transcript and render frames as they arrive. Returns the assistant text."""
    reply = ""
    text_started = False
    with requests.post(
        f"{API_BASE_URL}/chat",
        json={"messages": messages, "modelName": model_name},
        stream=True,
    ) as response:
        response.raise_for_status()
        with Live(Spinner("dots", text="[dim]Waiting for response...[/dim]"), console=console, transient=True) as live:
            for line in response.iter_lines():
                frame = parse_sse_line(line)
                if frame is None:
                    continue
                live.stop()
                if debug:
                    console.print(f"[dim]Received frame: {frame}[/dim]")
                if frame == DONE:
                    break

                kind = frame.get("type")
                if kind == "content":
                    if not text_started:
                        console.print("\n[bold green]Assistant:[/bold green]")
                        text_started = True
                    reply += frame.get("content", "")
                    console.print(frame.get("content", ""), end="", style="green")
                elif kind == "tool_call":
                    if text_started:
                        console.print()
                    name = frame.get("tool_call", {}).get("function", {}).get("name")
                    console.print(Panel(f"Calling tool: [bold yellow]{name}[/bold yellow]", expand=False, border_style="yellow"))
                elif kind == "error":
                    if text_started:
                        console.print()
                    console.print(Panel(f"{frame.get('content')}", title="Error", border_style="bold red"))
    if text_started:
        console.print()
    return reply


@app.command()
def main(
    model_name: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="The name of the model to use. If not provided, a list will be shown.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show every received frame.",
    ),
):
    """
    Main entry point for the Relay CLI.
    """
    console.print(Panel.fit(
        "[bold blue]Welcome to the Relay CLI![/bold blue]\n"
        "Chat with hosted language models and their tools.",
        style="bold blue"
    ))
    model_name = select_model(model_name)
    console.print(f"🤖 Starting chat with [bold green]{model_name}[/bold green]...")
    console.print(Panel(
        "Type [bold cyan]\\reset[/bold cyan] to clear the conversation, "
        "[bold cyan]\\exit[/bold cyan] or [bold cyan]\\quit[/bold cyan] to end",
        title="Chat Info",
        border_style="dim",
    ))

    transcript: List[Dict[str, Any]] = []
    while True:
        try:
            user_prompt = ptk_prompt(FormattedText([("bold cyan", "You "), ("", "(Alt+Enter for newline)\n")]), multiline=True)
            command = user_prompt.strip().lower()
            if command in ("\\exit", "\\quit"):
                console.print("👋 Goodbye!")
                break
            if command == "\\reset":
                transcript.clear()
                console.print("Conversation cleared.")
                continue
            if not command:
                continue

            transcript.append({"role": "user", "content": user_prompt})
            reply = stream_reply(transcript, model_name, debug=debug)
            if reply:
                transcript.append({"role": "assistant", "content": reply})
        except requests.RequestException as e:
            console.print(f"\n[bold red]Error:[/bold red] Could not get response from server. {e}")
            # Drop the unanswered turn so it is not resent.
            if transcript and transcript[-1]["role"] == "user":
                transcript.pop()
        except (KeyboardInterrupt, EOFError):
            console.print("👋 Goodbye!")
            break
        finally:
            console.rule()


if __name__ == "__main__":
    app()
