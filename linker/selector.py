"""Interactive selection of a ranked link through an external picker.

The ranked list is streamed to the picker's stdin by a writer task while
the caller reads the picker's stdout, so neither side blocks on a full
pipe. The picker prints the chosen line, or nothing if the user aborts.

Lines are tab separated: score, url, the tags as [tag,tag], then the link
ID. The default picker shows only the url and tags fields.
"""
import asyncio
import sys
from typing import Iterable, List, Optional, Sequence

from linker.scoring import ScoredLink


def render_line(scored: ScoredLink) -> str:
    """Render a scored link as one picker line."""
    tags = ",".join(scored.link.tags)
    return f"{scored.score:.2f}\t{scored.link.url}\t[{tags}]\t{scored.link.id}"


def _selected_fields(output: str) -> Optional[List[str]]:
    """Split the first non-blank line of the picker's output."""
    for line in output.splitlines():
        if line.strip():
            return line.split("\t")
    return None


def parse_selection(output: str) -> Optional[str]:
    """Extract the URL from the picker's output.

    Args:
        output: Text printed by the picker

    Returns:
        URL of the first selected line, or None if nothing was selected
    """
    parts = _selected_fields(output)
    if not parts or len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def parse_selected_id(output: str) -> Optional[str]:
    """Extract the link ID from the picker's output, if the line carries one."""
    parts = _selected_fields(output)
    if not parts or len(parts) < 4 or not parts[3]:
        return None
    return parts[3]


async def _feed_lines(stdin: asyncio.StreamWriter, lines: Iterable[str]) -> None:
    """Write all lines to the picker, then close its stdin."""
    try:
        for line in lines:
            stdin.write(f"{line}\n".encode("utf-8"))
            await stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        # Picker exited before reading everything (selection made or aborted)
        pass
    finally:
        stdin.close()


async def run_selector(
    lines: Sequence[str],
    command: List[str],
    timeout: Optional[float] = None,
) -> Optional[str]:
    """Run the picker over the given lines.

    Args:
        lines: Candidate lines, best first
        command: Picker command and arguments
        timeout: Seconds to wait for a selection (None = no limit)

    Returns:
        The chosen line, or None if aborted, timed out or unavailable
    """
    if not command:
        print("[Selector] No selector command configured", file=sys.stderr)
        return None

    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        print(f"[Selector] Could not start {command[0]}: {e}", file=sys.stderr)
        return None

    writer = asyncio.create_task(_feed_lines(proc.stdin, lines))

    try:
        output = await asyncio.wait_for(proc.stdout.read(), timeout=timeout)
        await proc.wait()
    except asyncio.TimeoutError:
        print(f"[Selector] No selection after {timeout}s, giving up", file=sys.stderr)
        proc.kill()
        await proc.wait()
        writer.cancel()
        return None
    finally:
        await asyncio.gather(writer, return_exceptions=True)

    chosen = output.decode("utf-8", errors="replace").strip("\n")
    return chosen or None


def select_link(
    results: Sequence[ScoredLink],
    command: List[str],
    timeout: Optional[float] = None,
) -> Optional[ScoredLink]:
    """Let the user pick one of the ranked links.

    The chosen line is matched back by link ID, so links sharing a URL
    stay distinct. A picker that prints only the url field falls back to
    the best ranked link with that URL.

    Returns:
        The chosen scored link, or None
    """
    lines = [render_line(scored) for scored in results]
    chosen = asyncio.run(run_selector(lines, command, timeout))

    if chosen is None:
        return None

    link_id = parse_selected_id(chosen)
    if link_id is not None:
        return next((s for s in results if s.link.id == link_id), None)

    url = parse_selection(chosen)
    if url is None:
        return None
    return next((s for s in results if s.link.url == url), None)
