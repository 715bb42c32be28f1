import argparse
import logging
import sys
from typing import Callable, List, Optional

from sommelier.config import Settings
from sommelier.errors import ConfigurationError, CredentialMissing, ParseError, ServiceError, StoreCorrupted
from sommelier.models.wine import WineNote
from sommelier.services.image import load_image_as_data_uri, thumbnail_data_uri
from sommelier.services.llm import GeminiService
from sommelier.services.normalization import build_note
from sommelier.services.store import FileStorage, RecordStore, SortCriterion
from sommelier.services.synthesis import WineSynthesisClient

logger = logging.getLogger(__name__)

PHOTO_FAILED_MESSAGE = (
    "Could not identify this label. Try a clearer photo or search for the wine by name."
)
SEARCH_FAILED_MESSAGE = "Search failed. Check your connection or try different keywords."


class SommelierJournal:
    """Ties AI synthesis, record normalization and the record store together."""

    def __init__(self, synthesis: WineSynthesisClient, store: RecordStore):
        self.synthesis = synthesis
        self.store = store

    def add_from_image(self, image_data: str) -> WineNote:
        """Identify a label photo (data URI) and prepend the resulting note."""
        analysis = self.synthesis.analyze_from_image(image_data)
        note = build_note(analysis, image_url=thumbnail_data_uri(image_data))
        self.store.insert(note)
        logger.info("Added %s (%s) from label photo", note.name, note.id)
        return note

    def add_from_query(self, query: str) -> WineNote:
        """Research a wine by description and prepend the resulting note."""
        result = self.synthesis.research_from_query(query)
        note = build_note(result.analysis, sources=result.sources)
        self.store.insert(note)
        logger.info("Added %s (%s) from search", note.name, note.id)
        return note

    def update(self, record_id: str, **changes) -> Optional[WineNote]:
        """Apply field changes to a note and save the whole record.

        ``characteristics`` may be a partial mapping; other axes are kept.
        """
        existing = self.store.get(record_id)
        if existing is None:
            return None

        data = existing.model_dump()
        characteristics = changes.pop("characteristics", None)
        if characteristics:
            data["characteristics"].update(characteristics)
        data.update(changes)
        data["id"] = record_id

        updated = WineNote.model_validate(data)
        self.store.replace(record_id, updated)
        return updated

    def delete(self, record_id: str, confirm: Callable[[WineNote], bool]) -> bool:
        note = self.store.get(record_id)
        if note is None or not confirm(note):
            return False
        return self.store.remove(record_id)

    def sorted_notes(self, criterion=SortCriterion.RECENT) -> List[WineNote]:
        return self.store.sorted_view(criterion)


def describe_error(exc: Exception, failed_message: str) -> str:
    """User-facing text for a synthesis failure."""
    if isinstance(exc, CredentialMissing):
        return str(exc)
    if isinstance(exc, (ServiceError, ParseError)):
        return failed_message
    return f"{failed_message} ({exc})"


def format_note(note: WineNote, verbose: bool = False) -> str:
    stars = "*" * (note.rating or 0)
    header = f"[{note.id}] {note.name} {note.vintage} - {note.winery} ({note.region}) {note.style} {stars}"
    if not verbose:
        return header

    c = note.characteristics
    lines = [
        header,
        f"  Varietal: {note.varietal}",
        f"  Body {c.body}/5  Acidity {c.acidity}/5  Tannin {c.tannin}/5  Sweetness {c.sweetness}/5",
        f"  Tasting notes: {note.tasting_notes}",
    ]
    if note.user_notes:
        lines.append(f"  My notes: {note.user_notes}")
    if note.search_sources:
        lines.append("  Sources:")
        lines.extend(f"    - {src.label}: {src.uri}" for src in note.search_sources[:3])
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sommelier", description="Personal wine-tasting journal")
    sub = parser.add_subparsers(dest="command", required=True)

    photo = sub.add_parser("add-photo", help="Identify a wine from a label photo")
    photo.add_argument("path", help="Path to the label image")

    search = sub.add_parser("add-search", help="Research a wine by name")
    search.add_argument("query", nargs="+", help="Producer, vintage, varietal ...")

    lst = sub.add_parser("list", help="List journal entries")
    lst.add_argument("--sort", choices=[c.value for c in SortCriterion], default=SortCriterion.RECENT.value)

    show = sub.add_parser("show", help="Show one entry")
    show.add_argument("id")

    edit = sub.add_parser("edit", help="Edit an entry")
    edit.add_argument("id")
    for field in ("name", "winery", "varietal", "region", "vintage", "style"):
        edit.add_argument(f"--{field}")
    edit.add_argument("--notes", dest="user_notes", help="Your own tasting notes")
    edit.add_argument("--rating", type=int, choices=range(1, 6))
    for axis in ("body", "acidity", "tannin", "sweetness"):
        edit.add_argument(f"--{axis}", type=int, choices=range(1, 6))

    delete = sub.add_parser("delete", help="Permanently remove an entry")
    delete.add_argument("id")
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    return parser


def _confirm_prompt(note: WineNote) -> bool:
    answer = input(f"Remove {note.name} ({note.vintage}) from the journal? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def run(args: argparse.Namespace, journal: SommelierJournal) -> int:
    if args.command in ("add-photo", "add-search"):
        failed_message = PHOTO_FAILED_MESSAGE if args.command == "add-photo" else SEARCH_FAILED_MESSAGE
        try:
            if args.command == "add-photo":
                note = journal.add_from_image(load_image_as_data_uri(args.path))
            else:
                note = journal.add_from_query(" ".join(args.query))
        except (CredentialMissing, ServiceError, ParseError, ValueError, OSError) as e:
            logger.error("%s failed: %s", args.command, e)
            print(describe_error(e, failed_message), file=sys.stderr)
            return 1
        print(format_note(note, verbose=True))
        return 0

    if args.command == "list":
        notes = journal.sorted_notes(args.sort)
        if not notes:
            print("Your journal is empty.")
        for note in notes:
            print(format_note(note))
        return 0

    note = journal.store.get(args.id)
    if note is None:
        print(f"No entry with id {args.id}", file=sys.stderr)
        return 1

    if args.command == "show":
        print(format_note(note, verbose=True))
        return 0

    if args.command == "edit":
        changes = {
            field: getattr(args, field)
            for field in ("name", "winery", "varietal", "region", "vintage", "style", "user_notes", "rating")
            if getattr(args, field) is not None
        }
        axes = {
            axis: getattr(args, axis)
            for axis in ("body", "acidity", "tannin", "sweetness")
            if getattr(args, axis) is not None
        }
        if axes:
            changes["characteristics"] = axes
        updated = journal.update(args.id, **changes)
        print(format_note(updated, verbose=True))
        return 0

    confirm = (lambda _note: True) if args.yes else _confirm_prompt
    if journal.delete(args.id, confirm=confirm):
        print(f"Removed {note.name}.")
    else:
        print("Kept.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    store = RecordStore(FileStorage(settings.data_dir))
    try:
        store.load()
    except StoreCorrupted as e:
        logger.error("%s", e)
        print(f"Journal data at {store.backend.path} is unreadable: {e}", file=sys.stderr)
        return 2

    llm = GeminiService(api_key=settings.api_key, model_name=settings.model_name)
    synthesis = WineSynthesisClient(
        llm, max_attempts=settings.max_attempts, image_max_size=settings.image_max_size
    )
    return run(args, SommelierJournal(synthesis, store))


if __name__ == "__main__":
    sys.exit(main())
