import unittest

from sommelier.models.wine import Citation, WineAnalysis, WineCharacteristics
from sommelier.services import normalization
from sommelier.services.normalization import build_note, new_note_id


class TestBuildNote(unittest.TestCase):
    def test_empty_analysis_gets_placeholders(self):
        note = build_note(WineAnalysis(), now=1_700_000_000_123)

        for field in ("name", "winery", "varietal", "region", "vintage", "tasting_notes", "style"):
            self.assertTrue(getattr(note, field), field)
        self.assertEqual(note.name, normalization.UNKNOWN_NAME)
        self.assertEqual(note.winery, normalization.UNKNOWN_WINERY)
        self.assertEqual(note.vintage, "N/V")
        self.assertEqual(note.style, "Red")
        self.assertEqual(note.user_notes, "")
        self.assertEqual(note.created_at, 1_700_000_000_123)
        self.assertEqual(
            note.characteristics,
            WineCharacteristics(body=3, acidity=3, tannin=3, sweetness=1),
        )

    def test_analysis_values_are_carried_over(self):
        analysis = WineAnalysis(
            name="Riesling Kabinett",
            winery="Dr. Loosen",
            varietal="Riesling",
            region="Mosel",
            vintage="2021",
            style="White",
            summary="Green apple and slate.",
            characteristics=WineCharacteristics(body=2, acidity=5, tannin=1, sweetness=3),
        )

        note = build_note(analysis)

        self.assertEqual(note.tasting_notes, "Green apple and slate.")
        self.assertEqual(note.region, "Mosel")
        self.assertEqual(note.characteristics.acidity, 5)

    def test_rating_always_starts_at_five(self):
        self.assertEqual(build_note(WineAnalysis(name="Anything")).rating, 5)

    def test_image_and_sources_attach_only_when_given(self):
        from_photo = build_note(WineAnalysis(), image_url="data:image/jpeg;base64,AAAA")
        self.assertEqual(from_photo.image_url, "data:image/jpeg;base64,AAAA")
        self.assertIsNone(from_photo.search_sources)

        sources = [Citation(title="Review", uri="https://example.com/review")]
        from_search = build_note(WineAnalysis(), sources=sources)
        self.assertIsNone(from_search.image_url)
        self.assertEqual(from_search.search_sources, sources)

    def test_ids_are_unique_within_the_same_millisecond(self):
        ids = {build_note(WineAnalysis(name="Same"), now=42).id for _ in range(50)}

        self.assertEqual(len(ids), 50)
        self.assertTrue(all(note_id.startswith("42-") for note_id in ids))

    def test_id_ignores_ai_supplied_values(self):
        note_id = new_note_id(1000)
        self.assertRegex(note_id, r"^1000-[0-9a-f]{8}$")


if __name__ == '__main__':
    unittest.main()
