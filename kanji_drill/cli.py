from typing import Any, Dict, List, Optional, Tuple

import click

from . import db
from .corpus import load_corpus, toggle_marked
from .errors import KanjiDrillError
from .importer import DEFAULT_FILE, import_file, load_default_workbook
from .models import ImportResult, KanjiRecord
from .quiz import MODES, MODE_RANDOM, QuizSession, has_reading

TYPE_NAMES = ("existing", "updated", "new", "learned", "marked")


def _echo_import(result: ImportResult) -> None:
    click.echo(f"Read {result.stats.total} kanji from {result.source}!")
    click.echo("")
    click.echo("📊 Statistics:")
    click.echo(f"🆕 New kanji: {result.stats.new}")
    click.echo(f"🔄 Updated kanji: {result.stats.updated}")
    click.echo(f"✅ Unchanged kanji: {result.stats.existing}")


def _normalize(answer: str) -> str:
    return "".join(answer.split()).lower()


def check_answers(record: KanjiRecord, answers: Dict[str, Any], skip: Dict[str, bool]) -> Tuple[Dict[str, bool], bool]:
    """Exact-match checker used by the terminal quiz.

    Skipped fields and fields the kanji has no reading for count as correct.
    Each kun/on answer has to match a different reading.
    """
    results: Dict[str, bool] = {}

    if skip.get("hanviet") or not has_reading(record.hanviet):
        results["hanviet"] = True
    else:
        expected = {_normalize(r) for r in record.hanviet}
        results["hanviet"] = _normalize(answers["hanviet"]) in expected

    for field in ("kun", "on"):
        readings: List[str] = [r for r in getattr(record, field) if r.strip()]
        if skip.get(field) or not readings:
            results[field] = True
            continue
        remaining = [_normalize(r) for r in readings]
        ok = True
        for given in answers[field]:
            key = _normalize(given)
            if key in remaining:
                remaining.remove(key)
            else:
                ok = False
        results[field] = ok

    return results, all(results.values())


@click.group()
def cli() -> None:
    """Study kanji imported from a spreadsheet."""


@cli.command("init-db")
def init_db() -> None:
    """Initialize the kanji database."""
    db.init_db()
    click.echo("Database initialized.")


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_cmd(path: str) -> None:
    """Import kanji from an Excel workbook (.xlsx)."""
    try:
        result = import_file(path, db.get_store())
    except KanjiDrillError as e:
        click.echo(f"❌ Import failed: {e}")
        return
    _echo_import(result)


@cli.command("import-default")
@click.option("--source", default=None, help=f"URL or path of the workbook (default: {DEFAULT_FILE})")
def import_default(source: Optional[str]) -> None:
    """Import the default kanji workbook."""
    try:
        result = load_default_workbook(db.get_store(), source)
    except KanjiDrillError as e:
        click.echo(f"❌ Error loading the default file: {e}")
        return
    _echo_import(result)


@cli.command("list")
def list_kanji() -> None:
    """List the imported kanji."""
    records = load_corpus(db.get_store())
    if not records:
        click.echo("No kanji imported yet.")
        return
    for record in records:
        examples = [e.text for e in record.example[:2] if e.text]
        click.echo(
            f"{record.kanji}\t{'、'.join(record.hanviet)}\t{'、'.join(record.kun)}\t"
            f"{'、'.join(record.on)}\t{' / '.join(examples)}"
        )


@cli.command("stats")
def show_stats() -> None:
    """Show how many kanji fall into each quiz category."""
    session = QuizSession(db.get_store())
    counts = session.stats()
    click.echo(f"✅ Unchanged: {counts['existing']}")
    click.echo(f"🔄 Updated: {counts['updated']}")
    click.echo(f"🆕 New: {counts['new']}")
    click.echo(f"📚 Learned: {counts['learned']}")
    click.echo(f"⭐ Marked: {counts['marked']}")
    click.echo(f"Total: {len(session.corpus)}")


@cli.command("mark")
@click.argument("kanji")
def mark(kanji: str) -> None:
    """Mark or unmark a kanji for review."""
    if toggle_marked(db.get_store(), kanji):
        click.echo(f"⭐ Marked {kanji}")
    else:
        click.echo(f"Unmarked {kanji}")


def _ask_answers(session: QuizSession) -> None:
    record = session.current
    if record is None:
        return
    if not session.skip_fields["hanviet"] and has_reading(record.hanviet):
        session.set_answer("hanviet", click.prompt("Hán Việt", default="", show_default=False))
    for field, label in (("kun", "Kun"), ("on", "On")):
        if session.skip_fields[field]:
            continue
        for i in range(len(getattr(session.answers, field))):
            session.set_answer(field, click.prompt(f"{label} {i + 1}", default="", show_default=False), i)


def _show_result(record: KanjiRecord, correctness: Dict[str, bool]) -> None:
    for field, label in (("hanviet", "Hán Việt"), ("kun", "Kun"), ("on", "On")):
        icon = "✅" if correctness[field] else "❌"
        click.echo(f"  {icon} {label}: {'、'.join(getattr(record, field)) or '-'}")
    for example in record.example:
        if example.text:
            reading = f" ({example.phonetic})" if example.phonetic else ""
            click.echo(f"  • {example.text}{reading}")


@cli.command("quiz")
@click.option("--mode", type=click.Choice(MODES), default=MODE_RANDOM, show_default=True, help="How kanji are picked")
@click.option("--exclude", "excluded", multiple=True, type=click.Choice(TYPE_NAMES), help="Kanji type to leave out")
@click.option("--skip", "skipped", multiple=True, type=click.Choice(("hanviet", "kun", "on")), help="Field not to ask for")
def quiz(mode: str, excluded: Tuple[str, ...], skipped: Tuple[str, ...]) -> None:
    """Run an interactive kanji quiz."""
    store = db.get_store()
    session = QuizSession(store)
    if not session.corpus:
        click.echo("Import an Excel file before starting a quiz.")
        return

    session.set_mode(mode)
    for name in excluded:
        session.set_type(name, False)
    if skipped:
        for field in ("hanviet", "kun", "on"):
            session.set_skip_field(field, field in skipped)

    count, total = session.preview()
    click.echo(f"Kanji to test: {count} / {total}")
    try:
        session.start()
    except KanjiDrillError as e:
        click.echo(f"❌ {e}")
        return

    while True:
        record = session.current
        if record is None:
            break
        star = " ⭐" if session.is_marked else ""
        click.echo(f"\n【{record.kanji}】{star}")
        _ask_answers(session)
        results, all_correct = check_answers(
            record,
            {"hanviet": session.answers.hanviet, "kun": session.answers.kun, "on": session.answers.on},
            session.skip_fields,
        )
        session.record_result(results)
        click.echo("🎉 Correct!" if all_correct else "Not quite:")
        _show_result(record, session.correctness)

        while True:
            previous_hint = ", [p]revious" if session.on_previous else ""
            choices = ["n", "m", "q"] + (["p"] if session.on_previous else [])
            action = click.prompt(f"[n]ext{previous_hint}, [m]ark, [q]uit", type=click.Choice(choices), default="n")
            if action != "m":
                break
            click.echo("⭐ Marked" if session.toggle_mark() else "Unmarked")

        if action == "q":
            session.configure()
            break
        if action == "p":
            session.previous()
        else:
            session.next()


if __name__ == "__main__":
    cli()
