#!/usr/bin/env python3
"""
Video chat demo: ask questions about a YouTube video from the terminal.

Usage:
    python demo.py <video-url>              # interactive REPL
    python demo.py <video-url> --scripted   # run predefined questions
"""

import sys

from dotenv import load_dotenv

load_dotenv()

from vidchat.chatbot import AnswerError, ChatBot, build_context
from vidchat.config import Settings
from vidchat.policy import SessionPolicy
from vidchat.sessions import HistoryEntry, QuotaExceeded, SessionStore
from vidchat.token_tracker import TokenTracker
from vidchat.transcript import TranscriptFetcher, TranscriptUnavailable
from vidchat.youtube import VideoLookupError, YouTubeClient

SCRIPTED_QUESTIONS = [
    "What is this video about?",
    "Summarize the main points in three bullets.",
    "Who made it?",
]


def _ask(question: str, session_id: str, store: SessionStore, policy: SessionPolicy, bot: ChatBot) -> bool:
    """Ask one question. Returns False once the session cannot take more messages."""
    session = store.get(session_id)
    if not policy.can_exchange(session):
        print("  (Message limit reached for this session)")
        return False

    try:
        answer = bot.answer(session.context, session.history, question)
    except AnswerError as e:
        print(f"  Error: {e}")
        return True

    try:
        session = store.append_exchange(session_id, question, answer)
    except QuotaExceeded:
        print("  (Message limit reached for this session)")
        return False

    print(f"\n{answer}\n")
    print(f"  [{policy.remaining_messages(session)} message(s) left]")
    return not policy.is_quota_exceeded(session)


def run_interactive(session_id: str, store: SessionStore, policy: SessionPolicy, bot: ChatBot):
    print("\nAsk a question about the video (or 'quit' to exit):\n")

    while True:
        try:
            question = input("ask> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not question or question.lower() in ("quit", "exit", "q"):
            break

        if not _ask(question, session_id, store, policy, bot):
            break


def run_scripted(session_id: str, store: SessionStore, policy: SessionPolicy, bot: ChatBot):
    for i, question in enumerate(SCRIPTED_QUESTIONS, 1):
        print(f"\n{'═' * 60}")
        print(f"  Question {i}: \"{question}\"")
        print(f"{'═' * 60}")

        if not _ask(question, session_id, store, policy, bot):
            break


def print_history(history: list[HistoryEntry]):
    print(f"\n{'─' * 60}\n  Conversation ({len(history)} messages)\n{'─' * 60}")
    for entry in history:
        print(f"  {entry.speaker:>4}: {entry.text}")


def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if not args:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    scripted = "--scripted" in sys.argv

    settings = Settings.from_env()
    policy = SessionPolicy.from_settings(settings)
    tracker = TokenTracker()
    bot = ChatBot(
        api_key=settings.openai_api_key,
        model=settings.chat_model,
        timeout=settings.llm_timeout_seconds,
        tracker=tracker,
    )
    store = SessionStore()

    youtube = YouTubeClient(api_key=settings.youtube_api_key)
    try:
        print("Fetching video...")
        video = youtube.fetch_video(args[0])
        transcript = TranscriptFetcher().fetch(video.id)
    except (VideoLookupError, TranscriptUnavailable) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        youtube.close()

    print(f"Ready: \"{video.title}\" by {video.channel.name} ({len(transcript.split()):,} transcript words)")
    session_id = store.create(build_context(video, transcript), policy.max_messages)

    if scripted:
        run_scripted(session_id, store, policy, bot)
    else:
        run_interactive(session_id, store, policy, bot)

    print_history(store.remove(session_id))

    s = tracker.summary()
    print(f"\nToken usage: {s['total_calls']} API calls, ${s['total_cost_usd']:.6f} total cost")


if __name__ == "__main__":
    main()
