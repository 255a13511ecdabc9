#!/usr/bin/env python3
"""
Language trainer
Console entry point for practice and vocabulary review
"""

import argparse
import asyncio
import logging

from langtrainer.config import get_settings
from langtrainer.conversation import ConversationPartner
from langtrainer.core.content.loader import load_sections
from langtrainer.core.content.models import CHOICE_TYPES, ExerciseType
from langtrainer.core.session.practice_session import PracticeSession
from langtrainer.database import init_db
from langtrainer.learning_service import LearningService
from langtrainer.speech import SilentSpeech


def _ask(prompt: str) -> str:
    return input(f"{prompt} ").strip()


def _collect_input(session: PracticeSession) -> None:
    """Fill the session's transient input for the current exercise"""
    exercise = session.current_exercise
    print(f"\n[{session.current_index + 1}/{session.total}] {exercise.question}")

    if exercise.type in CHOICE_TYPES:
        for number, option in enumerate(exercise.options, start=1):
            print(f"  {number}. {option}")
        choice = _ask("Option number:")
        if choice.isdigit() and 1 <= int(choice) <= len(exercise.options):
            session.select_option(exercise.options[int(choice) - 1])

    elif exercise.type == ExerciseType.REORDER_WORDS:
        while session.word_bank:
            print("  Bank: " + "  ".join(f"{i}:{w}" for i, w in enumerate(session.word_bank)))
            print("  Sentence: " + " ".join(session.input.constructed))
            pick = _ask("Word number (empty to stop):")
            if not pick.isdigit() or int(pick) >= len(session.word_bank):
                break
            session.pick_word(int(pick))

    elif exercise.type == ExerciseType.MATCH_PAIRS:
        while True:
            tokens = session.match_left + session.match_right
            print("  Tokens: " + "  ".join(f"{i}:{t}" for i, t in enumerate(tokens)))
            pick = _ask("Token number (empty to submit):")
            if not pick.isdigit() or int(pick) >= len(tokens):
                break
            print(f"  -> {session.click_match_token(tokens[int(pick)]).value}")

    else:
        session.set_text(_ask("Your answer:"))


async def run_practice(service: LearningService, lesson_id: str) -> None:
    session = service.start_practice(lesson_id)
    if session is None:
        print(f"Lesson {lesson_id} is locked or does not exist.")
        return

    while not session.is_complete:
        exercise = session.current_exercise
        if exercise.is_conversation:
            print(f"\n[{session.current_index + 1}/{session.total}] {exercise.question}")
            while True:
                message = _ask("You (empty to continue):")
                if not message:
                    break
                reply = await session.send_message(message)
                print(f"  AI: {reply.text}")
                if reply.correction:
                    print(f"  Correction: {reply.correction}")
            session.advance()
            continue

        _collect_input(session)
        session.check()
        print(f"  {session.feedback}")
        session.advance()

    summary = service.finish_practice()
    print(f"\nScore: {summary.score}  Accuracy: {summary.accuracy:.1f}%  XP: {service.experience}")


def run_review(service: LearningService, lesson_id: str) -> None:
    review = service.start_review(lesson_id)
    if review is None:
        print(f"Lesson {lesson_id} is locked or does not exist.")
        return
    if not review.has_cards:
        print("Nothing to review today.")
        return

    while not review.is_finished:
        card = review.current_card
        _ask(f"\n{card.headword}  (press Enter to reveal)")
        print(f"  {card.translation}  [{card.phonetic}]  {card.example}")
        rating = _ask("Rate again/hard/good/easy:") or "good"
        try:
            record = review.rate(rating)
        except ValueError:
            print("  Unknown rating, try again.")
            continue
        print(f"  Next review: {record.next_due_date}")


def show_status(service: LearningService, level: str) -> None:
    print(f"XP: {service.experience}  Level: {level}")
    sections = service.course.sections_for_level(level)
    if not sections:
        available = ", ".join(service.course.levels())
        print(f"No lessons for level {level} yet. Available: {available}")
        return
    for section in sections:
        print(f"\n{section.title}")
        for lesson in section.lessons:
            state = "locked" if lesson.is_locked else f"{lesson.stars}★"
            print(f"  {lesson.id:10} {lesson.title:30} {state}")


async def main():
    """Main application entry point"""
    parser = argparse.ArgumentParser(description="Language trainer")
    parser.add_argument("command", choices=["practice", "review", "status"])
    parser.add_argument("lesson_id", nargs="?")
    parser.add_argument("--level", default="A1", help="Course level shown by status")
    args = parser.parse_args()

    # Load configuration
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger = logging.getLogger(__name__)
    logger.info("Starting language trainer...")

    service = LearningService(
        load_sections(settings.content_path),
        init_db(),
        settings=settings,
        partner=ConversationPartner(),
        tts=SilentSpeech(),
    )

    try:
        if args.command == "status":
            show_status(service, args.level)
        elif not args.lesson_id:
            parser.error("lesson_id is required")
        elif args.command == "practice":
            await run_practice(service, args.lesson_id)
        else:
            run_review(service, args.lesson_id)
    except KeyboardInterrupt:
        service.exit_practice()
        logger.info("Interrupted, progress of the running practice discarded")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
