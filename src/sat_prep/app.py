"""Interactive CLI application."""
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from sat_prep.config import get_settings
from sat_prep.dashboard import (
    days_until, dream_score_progress, get_accuracy_color, get_overall_stats, is_chartable,
    result_topic_breakdown, score_series, topic_accuracy, xp_progress,
)
from sat_prep.error_log import build_retake, filter_by_source, retake_candidates, source_counts
from sat_prep.errors import GenerationError, LoginError, NothingToRetake, SatPrepError
from sat_prep.flashcards import FlashcardDeck
from sat_prep.gamification import TASKS
from sat_prep.gemini import GeminiClient
from sat_prep.generation import ContentClient
from sat_prep.lessons import LessonView
from sat_prep.log import configure_logging
from sat_prep.mock_test import MODE_FULL, MockTestFlow
from sat_prep.models import (
    SOURCE_FLASHCARD, SOURCE_QUESTION_BANK, SOURCES, TEST_FULL, TEST_QUICK, Question, TestResult,
)
from sat_prep.quiz import (
    QuestionBank, QuickPractice, load_placement_quiz, placement_recommendation, score_answers,
)
from sat_prep.session import Award, Session
from sat_prep.topics import AVATARS, CATEGORIES, DIFFICULTIES, TOPICS, Topic, topics_for_category

logger = logging.getLogger(__name__)
console = Console()

LETTERS = "abcd"


class Page(str, Enum):
    TOPICS = "topics"
    SUB_TOPICS = "sub-topics"
    LESSON = "lesson"
    PLACEMENT_QUIZ = "placement-quiz"
    QUESTION_BANK = "question-bank"
    MOCK_TEST = "mock-test"
    RESULTS = "results"
    ERROR_LOG = "error-log"
    FLASHCARDS = "flashcards"
    STATISTICS = "statistics"
    PROFILE = "profile"
    SETTINGS = "settings"


MENU = [
    (Page.TOPICS, "Lessons by topic"),
    (Page.QUESTION_BANK, "Practice questions"),
    (Page.MOCK_TEST, "Quick test or full SAT simulation"),
    (Page.FLASHCARDS, "Vocabulary flashcards"),
    (Page.ERROR_LOG, "Review and retake mistakes"),
    (Page.STATISTICS, "Progress charts"),
    (Page.PROFILE, "Level, achievements and avatar"),
    (Page.SETTINGS, "Dream score and exam date"),
]


class SessionExitRequested(Exception):
    """User typed 'q' or 'menu' to leave the current activity."""


@dataclass
class AppState:
    session: Session
    client: ContentClient
    topic: Optional[Topic] = None
    sub_topic: Optional[str] = None
    clock: Callable[[], float] = field(default=time.monotonic)


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return answer


def generate_with_retry(message: str, fn: Callable):
    """Run a generation call behind a spinner, offering a retry on failure.

    Declining the retry leaves the current activity.
    """
    while True:
        try:
            with console.status(message):
                return fn()
        except GenerationError as e:
            console.print(f"[red]{e}[/red]")
            if not Confirm.ask("Try again?", default=True):
                raise SessionExitRequested()


def format_time(seconds: int) -> str:
    return f"{seconds // 60}:{seconds % 60:02d}"


def show_question(question: Question, number: int, total: int, selected: Optional[str] = None) -> None:
    console.print(f"\n[bold]Question {number} of {total}[/bold] [dim]({question.topic})[/dim]")
    if question.passage:
        console.print(Panel(question.passage, border_style="dim"))
    console.print(question.question + "\n")
    for letter, option in zip(LETTERS, question.options):
        marker = "[bold magenta]>[/bold magenta]" if option == selected else " "
        console.print(f" {marker}[cyan]{letter})[/cyan] {option}")


def option_for(question: Question, raw: str) -> Optional[str]:
    key = raw.strip().lower()
    if len(key) == 1 and key in LETTERS[: len(question.options)]:
        return question.options[LETTERS.index(key)]
    return None


def ask_option(question: Question) -> str:
    while True:
        option = option_for(question, session_prompt("Your answer"))
        if option is not None:
            return option
        console.print("[red]Pick one of the listed letters.[/red]")


def show_answer_outcome(question: Question, option: str) -> None:
    if question.is_correct(option):
        console.print("[green]Correct![/green]")
    else:
        console.print(f"[red]Incorrect.[/red] Answer: [green]{question.correct_answer}[/green]")
    if question.explanation:
        console.print(f"[dim]{question.explanation}[/dim]")


def announce_award(award: Award) -> None:
    console.print(f"[bold green]+{award.xp} XP[/bold green]")
    if award.levels_gained:
        console.print(f"[bold magenta]Level up! (+{award.levels_gained})[/bold magenta]")
    for task in award.tasks:
        console.print(f"[bold yellow]Achievement unlocked:[/bold yellow] {task.description} (+{task.xp} XP)")


def show_welcome(state: AppState) -> None:
    p = state.session.profile
    console.print(Panel(
        f"[bold]SAT Prep Hub[/bold]\n[dim]Signed in as {state.session.username} "
        f"- Level {p.level} ({p.xp}/{p.xp_to_next_level} XP)[/dim]",
        title="Welcome", border_style="blue",
    ))
    if state.session.exam_date:
        console.print(f"  [cyan]{days_until(state.session.exam_date)} days until your SAT[/cyan]")


def show_menu() -> None:
    console.print("\n[bold]Commands:[/bold]")
    for page, desc in MENU:
        console.print(f"  [cyan]{page.value:<14}[/cyan] {desc}")
    console.print(f"  [cyan]{'logout':<14}[/cyan] Sign out and clear local data")
    console.print(f"  [cyan]{'quit':<14}[/cyan] Exit")


def run_login(session: Session) -> None:
    console.print(Panel("[bold]Welcome to SAT Prep Hub[/bold]\n[dim]Sign in to start your journey[/dim]"))
    while not session.is_logged_in:
        username = Prompt.ask("Username")
        password = Prompt.ask("Password", password=True)
        try:
            session.login(username, password)
        except LoginError as e:
            console.print(f"[red]{e}[/red]")


# --- Topics and lessons ---


def view_topics(state: AppState) -> Optional[Page]:
    if not state.session.placement_quiz_taken:
        console.print(Panel(
            "New here? Take the 10-question placement quiz to find your starting point. Type 'p'.",
            border_style="yellow",
        ))
    table = Table(title="SAT Topics")
    table.add_column("#", justify="right")
    table.add_column("Topic", style="cyan")
    table.add_column("Section")
    table.add_column("Description")
    for i, topic in enumerate(TOPICS, 1):
        table.add_row(str(i), topic.name, topic.category, topic.description)
    console.print(table)
    choice = session_prompt("Topic number (or 'p' for placement quiz)").strip().lower()
    if choice == "p":
        return Page.PLACEMENT_QUIZ
    if choice.isdigit() and 1 <= int(choice) <= len(TOPICS):
        state.topic = TOPICS[int(choice) - 1]
        return Page.SUB_TOPICS
    console.print("[red]Unknown topic.[/red]")
    return None


def view_sub_topics(state: AppState) -> Optional[Page]:
    if state.topic is None:
        return Page.TOPICS
    console.print(f"\n[bold]{state.topic.name}[/bold]")
    for i, name in enumerate(state.topic.sub_topics, 1):
        console.print(f"  [cyan]{i}[/cyan]) {name}")
    choice = IntPrompt.ask("Select a sub-topic", choices=[str(i) for i in range(1, len(state.topic.sub_topics) + 1)])
    state.sub_topic = state.topic.sub_topics[choice - 1]
    return Page.LESSON


def view_lesson(state: AppState) -> Optional[Page]:
    if state.topic is None or state.sub_topic is None:
        return Page.TOPICS
    view = LessonView(state.client, state.topic, state.sub_topic)
    lesson = generate_with_retry("Preparing your lesson...", view.load)
    console.print(Panel(lesson.introduction, title=f"{state.topic.name}: {state.sub_topic}", border_style="blue"))
    for concept in lesson.key_concepts:
        console.print(Panel(concept.content, title=concept.title, border_style="cyan"))
    console.print(Panel(
        f"[bold]Problem[/bold]\n{lesson.worked_example.problem}\n\n[bold]Solution[/bold]\n{lesson.worked_example.solution}",
        title="Worked Example", border_style="green",
    ))
    for item in lesson.common_mistakes:
        console.print(f"  [red]x[/red] {item.mistake}\n  [green]v[/green] {item.correction}\n")
    question = lesson.concept_check_question
    console.print("[bold]Concept Check[/bold]")
    show_question(question, 1, 1)
    option = ask_option(question)
    view.check(option)
    show_answer_outcome(question, option)
    return Page.SUB_TOPICS


def view_placement_quiz(state: AppState) -> Optional[Page]:
    questions = generate_with_retry("Preparing your placement quiz...", lambda: load_placement_quiz(state.client))
    answers = []
    for i, q in enumerate(questions, 1):
        show_question(q, i, len(questions))
        answers.append(ask_option(q))
    score = score_answers(questions, answers)
    console.print(Panel(
        f"You scored [bold]{score}/{len(questions)}[/bold]\n\n{placement_recommendation(score, len(questions))}",
        title="Placement Complete", border_style="green",
    ))
    state.session.complete_placement_quiz()
    return Page.TOPICS


# --- Practice ---


def record_practice_mistake(state: AppState, source: str) -> Callable[[Question, str], None]:
    def record(question: Question, answer: str) -> None:
        state.session.add_to_error_log(question, answer, source)
    return record


def run_quick_practice(state: AppState) -> None:
    subject = Prompt.ask("Subject", choices=list(CATEGORIES) + ["Mixed"], default="Mixed")
    difficulty = Prompt.ask("Difficulty", choices=list(DIFFICULTIES), default="medium")
    practice = QuickPractice(state.client, record_practice_mistake(state, SOURCE_QUESTION_BANK))
    generate_with_retry("Generating quiz...", lambda: practice.start(subject, difficulty))
    try:
        while True:
            q = practice.questions[practice.current]
            show_question(q, practice.current + 1, len(practice.questions), practice.answers[practice.current])
            started = state.clock()
            raw = session_prompt("Answer (a-d), n=next, p=previous, f=finish").strip().lower()
            practice.advance_clock(state.clock() - started)
            option = option_for(q, raw)
            if option is not None:
                practice.answer(option)
            elif raw == "n":
                practice.next()
            elif raw == "p":
                practice.back()
            elif raw == "f":
                break
    finally:
        practice.close()
    score = practice.finish()
    console.print(f"[bold]Score: {score}/{len(practice.questions)}[/bold] in {format_time(practice.seconds)}")


def run_topic_practice(state: AppState) -> None:
    category = Prompt.ask("Section", choices=list(CATEGORIES), default=CATEGORIES[0])
    topics = topics_for_category(category)
    for i, t in enumerate(topics, 1):
        console.print(f"  [cyan]{i}[/cyan]) {t.name}")
    choice = IntPrompt.ask("Select topic", choices=[str(i) for i in range(1, len(topics) + 1)])
    bank = QuestionBank(state.client, record_practice_mistake(state, SOURCE_QUESTION_BANK))
    topic = topics[choice - 1].name
    generate_with_retry("Generating questions...", lambda: bank.load_topic(topic))
    while True:
        q = bank.current
        show_question(q, bank.index + 1, len(bank.cache))
        option = ask_option(q)
        with console.status("Checking..."):
            bank.answer(option)
        show_answer_outcome(q, option)
        if bank.feedback:
            console.print(Panel(bank.feedback, title="Feedback", border_style="yellow"))
        label = "Generate more questions" if bank.at_end_of_cache else "Next question"
        session_prompt(f"[dim]Enter for {label.lower()}, q to stop[/dim]", default="")
        try:
            with console.status("Generating..."):
                bank.next_question()
        except GenerationError as e:
            console.print(f"[red]Failed to generate more questions: {e}[/red]")
            return


def view_question_bank(state: AppState) -> Optional[Page]:
    mode = Prompt.ask("Practice mode", choices=["quick", "topic"], default="topic")
    if mode == "quick":
        run_quick_practice(state)
    else:
        run_topic_practice(state)
    return None


# --- Mock tests ---


def run_test(state: AppState, flow: MockTestFlow) -> Optional[TestResult]:
    """Drive a started flow until it finishes or the user leaves."""
    try:
        while flow.is_active:
            q = flow.current_question
            header = "Full SAT Simulation" if flow.mode == MODE_FULL else "Test"
            if flow.stage_title:
                header += f" - {flow.stage_title}"
            console.print(f"\n[bold]{header}[/bold]  [dim]{format_time(flow.elapsed)} elapsed, "
                          f"{format_time(flow.time_left)} left on this question[/dim]")
            show_question(q, flow.current + 1, len(flow.questions), flow.answers[flow.current])
            position = (flow.stage, flow.current)
            started = state.clock()
            raw = session_prompt("Answer (a-d), n=next, p=previous").strip().lower()
            flow.advance_clock(state.clock() - started)
            if not flow.is_active:
                break
            if (flow.stage, flow.current) != position:
                console.print("[yellow]Time's up - moved to the next question.[/yellow]")
                continue
            option = option_for(q, raw)
            if option is not None:
                flow.select(option)
            elif raw in ("n", ""):
                if flow.is_last_question and flow.mode == MODE_FULL:
                    with console.status("Generating your next module..."):
                        flow.next()
                else:
                    flow.next()
            elif raw == "p":
                flow.previous()
    finally:
        flow.close()
    if flow.ended_early:
        console.print(f"[red]Could not load the next test module ({flow.error}). The test ended early.[/red]")
    return flow.result


def finish_test(state: AppState, result: Optional[TestResult]) -> Optional[Page]:
    if result is None:
        return None
    announce_award(state.session.complete_test(result))
    return Page.RESULTS


def view_mock_test(state: AppState) -> Optional[Page]:
    console.print("\n[bold]Choose Your Mock Test[/bold]")
    console.print("  [cyan]quick[/cyan]  A 10-question mixed test (~15 minutes)")
    console.print("  [cyan]full[/cyan]   Adaptive 98-question simulation with 1600-point scoring (~2h14m)")
    mode = Prompt.ask("Test", choices=["quick", "full"], default="quick")
    flow = MockTestFlow(state.client)
    start = flow.start_quick if mode == "quick" else flow.start_full_simulation
    try:
        with console.status("Generating your test..."):
            start()
    except GenerationError as e:
        console.print(f"[red]Could not start the test: {e}. Please try again.[/red]")
        return None
    return finish_test(state, run_test(state, flow))


def view_results(state: AppState) -> Optional[Page]:
    result = state.session.latest_result
    if result is None:
        console.print("[yellow]No results yet. Take a mock test first.[/yellow]")
        return None
    if result.test_type == TEST_FULL:
        body = (f"[bold]{result.total_score}[/bold] / 1600\n"
                f"English {result.english_score}  |  Math {result.math_score}")
    else:
        body = f"[bold]{result.total_score}%[/bold]"
    console.print(Panel(f"{body}\n[dim]Time: {format_time(result.duration)}[/dim]",
                        title=f"{result.test_type} Results", border_style="green"))
    table = Table(title="Accuracy by Topic")
    table.add_column("Topic", style="cyan")
    table.add_column("Accuracy", justify="right")
    for row in result_topic_breakdown(result):
        color = get_accuracy_color(row["accuracy"])
        table.add_row(row["name"], f"[{color}]{row['accuracy']}%[/{color}]")
    console.print(table)
    return None


# --- Error log ---


def view_error_log(state: AppState) -> Optional[Page]:
    log = state.session.error_log
    if not log:
        console.print("[green]Your error log is empty. Keep practicing![/green]")
        return None
    counts = source_counts(log)
    console.print("  ".join(f"[cyan]{k}[/cyan] ({v})" for k, v in counts.items()))
    tab = Prompt.ask("Show", choices=["All"] + [s for s in SOURCES if s in counts], default="All")
    entries = filter_by_source(log, None if tab == "All" else tab)
    table = Table(title="Error Log")
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Your answer", style="red")
    table.add_column("Correct", style="green")
    table.add_column("Source", style="dim")
    for i, e in enumerate(entries, 1):
        table.add_row(str(i), e.question.question, e.user_answer, e.question.correct_answer, e.source)
    console.print(table)
    retakeable = len(retake_candidates(log))
    if not retakeable or not Confirm.ask(f"Retake mistakes ({retakeable} questions)?", default=False):
        return None
    try:
        with console.status("Preparing your test..."):
            questions = build_retake(state.client, log)
    except NothingToRetake as e:
        console.print(f"[yellow]{e}[/yellow]")
        return None
    except GenerationError as e:
        console.print(f"[red]Failed to regenerate questions for your retake test: {e}[/red]")
        return None
    flow = MockTestFlow(state.client)
    flow.start_retake(questions)
    return finish_test(state, run_test(state, flow))


# --- Flashcards ---


def view_flashcards(state: AppState) -> Optional[Page]:
    deck = FlashcardDeck(state.client, record_practice_mistake(state, SOURCE_FLASHCARD))
    while True:
        generate_with_retry("Dealing flashcards...", deck.deal)
        result = None
        while result is None:
            card = deck.current
            console.print(Panel(f"[bold]{card.word}[/bold]\n[dim]{card.sentence}[/dim]",
                                title=f"Card {deck.index + 1}/{len(deck.cards)}", border_style="cyan"))
            for letter, option in zip(LETTERS, card.options):
                console.print(f"  [cyan]{letter})[/cyan] {option}")
            option = None
            while option is None:
                key = session_prompt("Definition").strip().lower()
                if len(key) == 1 and key in LETTERS[: len(card.options)]:
                    option = card.options[LETTERS.index(key)]
            if deck.answer(option):
                console.print("[green]Correct![/green]")
            else:
                console.print(f"[red]Incorrect.[/red] {card.word}: [green]{card.definition}[/green]")
            result = deck.next()
        console.print(Panel(f"You got [bold]{result.score}/{result.total}[/bold]", title="Deck Complete"))
        announce_award(state.session.complete_flashcard_deck(result))
        if not Confirm.ask("Start a new deck?", default=False):
            return None


# --- Statistics, profile, settings ---


def _series_table(title: str, series: list, full: bool) -> Table:
    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Score", justify="right")
    if full:
        table.add_column("English", justify="right")
        table.add_column("Math", justify="right")
    for point in series:
        day = date.fromtimestamp(point["timestamp"] / 1000).isoformat()
        row = [day, str(point["total_score"])]
        if full:
            row += [str(point["english_score"]), str(point["math_score"])]
        table.add_row(*row)
    return table


def view_statistics(state: AppState) -> Optional[Page]:
    s = state.session
    if not s.test_history and not s.flashcard_history:
        console.print("[yellow]No statistics yet. Complete a test or a flashcard deck first.[/yellow]")
        return None
    stats = get_overall_stats(s.test_history, s.flashcard_history)
    console.print(f"\n  Tests: [bold]{stats['total_tests']}[/bold]  |  "
                  f"Avg Score: [bold]{stats['avg_score_label']}[/bold]  |  "
                  f"Flashcards: [bold]{stats['flashcards_reviewed']}[/bold]  |  "
                  f"Flashcard Accuracy: [bold]{stats['avg_flashcard_score']}%[/bold]")
    full = score_series(s.test_history, TEST_FULL)
    if is_chartable(full):
        console.print(_series_table("Full Simulation Score Over Time", full, True))
    quick = score_series(s.test_history, TEST_QUICK)
    if is_chartable(quick):
        console.print(_series_table("Quick Test Score Over Time", quick, False))
    rows = topic_accuracy(s.test_history)
    if rows:
        table = Table(title="Accuracy by Topic (All Tests)")
        table.add_column("Topic", style="cyan")
        table.add_column("Accuracy", justify="right")
        table.add_column("")
        for row in rows:
            color = get_accuracy_color(row["accuracy"])
            bar = "█" * (row["accuracy"] // 5)
            table.add_row(row["name"], f"{row['accuracy']}%", f"[{color}]{bar}[/{color}]")
        console.print(table)
    return None


def view_profile(state: AppState) -> Optional[Page]:
    s = state.session
    p = s.profile
    console.print(Panel(
        f"[bold]{s.username}[/bold]  ({AVATARS[p.avatar_id % len(AVATARS)]})\n"
        f"Level {p.level}  -  {p.xp}/{p.xp_to_next_level} XP ({xp_progress(p):.0f}%)\n"
        f"Dream score {p.dream_score}: {dream_score_progress(p, s.test_history):.0f}% of the way there",
        title="Profile", border_style="blue",
    ))
    table = Table(title="Achievements")
    table.add_column("")
    table.add_column("Task")
    table.add_column("XP", justify="right")
    for task in TASKS:
        done = task.id in p.completed_tasks
        table.add_row("[green]v[/green]" if done else " ", task.description, str(task.xp))
    console.print(table)
    if Confirm.ask("Change avatar?", default=False):
        for i, name in enumerate(AVATARS):
            console.print(f"  [cyan]{i}[/cyan]) {name}")
        avatar = IntPrompt.ask("Avatar", choices=[str(i) for i in range(len(AVATARS))])
        s.update_profile(avatar_id=avatar)
    return None


def view_settings(state: AppState) -> Optional[Page]:
    s = state.session
    score = IntPrompt.ask("Dream SAT score (400-1600)", default=s.profile.dream_score)
    if 400 <= score <= 1600 and score % 10 == 0:
        s.update_profile(dream_score=score)
    else:
        console.print("[red]Scores run from 400 to 1600 in steps of 10.[/red]")
    raw = Prompt.ask("SAT date (YYYY-MM-DD, blank to keep)", default="")
    if raw.strip():
        try:
            s.set_exam_date(date.fromisoformat(raw.strip()))
        except ValueError:
            console.print("[red]Not a valid date.[/red]")
    console.print("[green]Settings saved.[/green]")
    return None


VIEWS: dict[Page, Callable[[AppState], Optional[Page]]] = {
    Page.TOPICS: view_topics,
    Page.SUB_TOPICS: view_sub_topics,
    Page.LESSON: view_lesson,
    Page.PLACEMENT_QUIZ: view_placement_quiz,
    Page.QUESTION_BANK: view_question_bank,
    Page.MOCK_TEST: view_mock_test,
    Page.RESULTS: view_results,
    Page.ERROR_LOG: view_error_log,
    Page.FLASHCARDS: view_flashcards,
    Page.STATISTICS: view_statistics,
    Page.PROFILE: view_profile,
    Page.SETTINGS: view_settings,
}


def navigate(state: AppState, page: Page) -> None:
    """Show ``page`` and follow any pages it leads to."""
    while page is not None:
        page = VIEWS[page](state)


def main():
    settings = get_settings()
    configure_logging(settings.log_level, console)
    session = Session.start(settings.db_path)
    if not session.is_logged_in:
        run_login(session)
    client = GeminiClient(settings=settings)
    state = AppState(session=session, client=client)
    show_welcome(state)

    try:
        while True:
            show_menu()
            choice = Prompt.ask("\n[bold]>[/bold]", default=Page.TOPICS.value).strip().lower()
            try:
                if choice in ("quit", "exit", "q"):
                    console.print("[dim]Good luck on your SAT![/dim]")
                    break
                elif choice == "logout":
                    session.logout()
                    console.print("[dim]Signed out.[/dim]")
                    run_login(session)
                    show_welcome(state)
                else:
                    try:
                        page = Page(choice)
                    except ValueError:
                        console.print("[red]Unknown command. Try again.[/red]")
                        continue
                    navigate(state, page)
            except SessionExitRequested:
                console.print("[dim]Back to the menu.[/dim]")
            except KeyboardInterrupt:
                console.print("\n[dim]Use 'quit' to exit.[/dim]")
            except SatPrepError as e:
                console.print(f"[red]{e}[/red]")
            except Exception as e:
                logger.exception("Unexpected error in %s", choice)
                console.print(f"[red]Error: {e}[/red]")
    finally:
        client.close()


if __name__ == "__main__":
    main()
