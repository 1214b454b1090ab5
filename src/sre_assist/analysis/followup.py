"""Interactive follow-up questions after an analysis pass."""

from __future__ import annotations

import logging
from typing import Callable

from sre_assist.analysis.client import Conversation, LLMAnalyzer
from sre_assist.collection.bundle import DiagnosticBundle
from sre_assist.console import Reporter
from sre_assist.errors import AnalysisError

logger = logging.getLogger(__name__)

EXIT_WORDS = frozenset({"exit", "quit", "q"})
PROMPT = "Question (or 'exit' to finish): "


def follow_up_loop(
    analyzer: LLMAnalyzer,
    conversation: Conversation,
    bundle: DiagnosticBundle,
    analysis_file: str,
    reporter: Reporter,
    read_line: Callable[[], str] = input,
) -> int:
    """Answer questions until exit or EOF. Returns the number answered.

    Each answer is appended to ``analysis_file`` in the bundle. A failed
    request is reported and the loop keeps going.
    """
    reporter.notice("\n=== Interactive Follow-up ===")
    reporter.plain("You can ask follow-up questions about the analysis. Type 'exit' or 'quit' to finish.")
    reporter.plain()

    answered = 0
    while True:
        reporter.prompt(PROMPT)
        try:
            question = read_line().strip()
        except EOFError:
            reporter.plain()
            break
        if not question:
            continue
        if question.lower() in EXIT_WORDS:
            reporter.success("Exiting interactive mode.")
            break

        reporter.notice("\nThinking...")
        try:
            answer = analyzer.ask(conversation, question)
        except AnalysisError as e:
            reporter.plain(f"Error: Failed to get response: {e}")
            continue

        reporter.success("\n=== Response ===")
        reporter.plain(answer)
        reporter.plain()
        try:
            bundle.append(
                analysis_file,
                f"\n\n=== Follow-up Question ===\n{question}\n\n=== Response ===\n{answer}\n",
            )
        except OSError as e:
            reporter.warning(f"Failed to append follow-up to analysis file: {e}")
        answered += 1

    logger.debug("Follow-up session ended after %d question(s)", answered)
    return answered
