"""Tests for the advisory page extraction."""

import unittest

from bs4 import BeautifulSoup

import schedule_fixtures  # noqa: F401  (puts src on the path)

from amtrakrt.advisories import (
    Decision,
    ElementKind,
    SectionState,
    advisory_id,
    classify_element,
    classify_section,
    merge_decision,
    parse_advisories,
    starts_with_emphasis,
)

STATION_NOTICES = """
<div class="ContentWidth ContentArea">
    <div>
        <h4><span class="u-textColor--darkBlue" style="text-decoration: underline;">Station Notices</span></h4>

        <p class="u-textColor--orange"><strong>IRVINE TRAIN STATION ELEVATOR MAINTENANCE</strong></p>
        <p><em>Updated December 16, 2025</em></p>
        <p>The City of Irvine will perform upcoming maintenance...</p>
        <p><strong>1/7/26 – (All Day)</strong>&nbsp;</p>
        <p>&nbsp;</p>

        <p class="u-textColor--orange"><strong>PARKING LOT CLOSED AT GUADALUPE STATION</strong></p>
        <p><em>Updated December 3, 2025</em></p>
        <p>Guadalupe Station Parking Lot...</p>

        <p class="u-textColor--orange"><strong>TEMPORARY TICKET WINDOW CLOSURES</strong></p>
        <p>Pacific Surfliner trains continue to serve all stations...</p>
        <ul>
            <li><strong>San Juan Capistrano</strong>: Nearest staffed station is Anaheim</li>
            <li><strong>Santa Ana</strong>: Nearest staffed station is Anaheim</li>
        </ul>
        <p><strong>Solana Beach</strong>:</p>
        <ul>
            <li>Nearest staffed station is Santa Fe Depot...</li>
        </ul>
    </div>
</div>
"""

TRACK_CLOSURES = """
<div class="ContentWidth ContentArea">
    <div>
        <h4><span class="u-textColor--darkBlue">Track Closures</span></h4>
        <p><strong>Temporary Track Closure</strong></p>
        <p>Description text.</p>
        <p>The <strong>bus connections</strong> will be as follows:</p>
        <p>More description.</p>
    </div>
</div>
"""

DIRECTIONAL = """
<div>
    <h4>Schedule Changes</h4>
    <p>Intro paragraph before any title.</p>
    <p><strong>Weekend Schedule Change</strong></p>
    <p>Some trains will not run.</p>
    <p><strong>Southbound</strong></p>
    <p>Train 562 is cancelled.</p>
    <p class="u-textColor--orange">Northbound Trains</p>
    <ol><li>Train 763 is cancelled.</li><li>Train 765 departs late.</li></ol>
    <p><strong>Holiday Service</strong> on Monday</p>
    <p>Modified schedule.</p>
</div>
"""

TWO_CATEGORIES = """
<div>
    <h4>Service Updates</h4>
    <p class="u-textColor--orange">&nbsp;</p>
    <p><strong>Not a title here</strong></p>
    <p class="u-textColor--orange"><strong>BUS BRIDGE</strong></p>
    <p>Buses replace trains.</p>
    <h4>Track Closures</h4>
    <p><strong>Closure A</strong></p>
    <p>Body A.</p>
</div>
"""


def first_p(html: str):
    return BeautifulSoup(html, "html.parser").find("p")


class TestAdvisoryExtraction(unittest.TestCase):
    """Test page segmentation into alerts."""

    def test_strict_grouping_station_notices(self):
        """Bold lines do not start alerts in a strict section."""
        alerts = parse_advisories(STATION_NOTICES, "88")

        self.assertEqual(
            [a.title for a in alerts],
            [
                "IRVINE TRAIN STATION ELEVATOR MAINTENANCE",
                "PARKING LOT CLOSED AT GUADALUPE STATION",
                "TEMPORARY TICKET WINDOW CLOSURES",
            ],
        )
        self.assertIn("1/7/26 – (All Day)", alerts[0].description)
        self.assertTrue(alerts[0].description.startswith("Updated December 16, 2025"))
        self.assertIn("San Juan Capistrano", alerts[2].description)
        self.assertIn("Solana Beach", alerts[2].description)
        self.assertTrue(all(a.category == "Station Notices" for a in alerts))
        self.assertTrue(all(a.route_id == "88" for a in alerts))

    def test_list_items_become_lines(self):
        """Each list item renders as its own line."""
        description = parse_advisories(STATION_NOTICES)[2].description
        self.assertIn("- San Juan Capistrano: Nearest staffed station is Anaheim\n", description)
        self.assertIn("- Santa Ana: Nearest staffed station is Anaheim\n", description)

    def test_normal_grouping_track_closures(self):
        """A lenient section accepts a bold-led title without the highlight."""
        html = """
        <div><h4>Track Closures</h4>
        <p><strong>Temporary Track Closure January 6</strong></p>
        <p>Due to weather-related track damage...</p></div>
        """
        alerts = parse_advisories(html)
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0].title, "Temporary Track Closure January 6")
        self.assertEqual(alerts[0].description, "Due to weather-related track damage...")

    def test_merge_non_start_strong(self):
        """Emphasis that does not lead the block is body text."""
        alerts = parse_advisories(TRACK_CLOSURES)
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0].title, "Temporary Track Closure")
        self.assertIn("The bus connections will be as follows", alerts[0].description)
        self.assertIn("More description.", alerts[0].description)

    def test_directional_subsections_merge(self):
        """Southbound/Northbound titles become subsections of the open alert."""
        alerts = parse_advisories(DIRECTIONAL)
        self.assertEqual([a.title for a in alerts], ["Weekend Schedule Change", "Holiday Service on Monday"])

        description = alerts[0].description
        self.assertIn("### Southbound\n\nTrain 562 is cancelled.", description)
        self.assertIn("### Northbound Trains\n\n- Train 763 is cancelled.\n- Train 765 departs late.", description)
        self.assertNotIn("Intro paragraph", description)
        self.assertEqual(alerts[1].description, "Modified schedule.")

    def test_categories_and_titles(self):
        """Each alert belongs to one category and none has an empty title."""
        alerts = parse_advisories(TWO_CATEGORIES)
        self.assertEqual([(a.category, a.title) for a in alerts], [
            ("Service Updates", "BUS BRIDGE"),
            ("Track Closures", "Closure A"),
        ])
        self.assertEqual(alerts[0].description, "Buses replace trains.")
        self.assertTrue(all(a.title for a in alerts))

    def test_empty_highlight_mid_body_is_content(self):
        """An empty highlighted block neither closes nor starts an alert."""
        html = """
        <div><h4>Service Updates</h4>
        <p class="u-textColor--orange"><strong>ALERT ONE</strong></p>
        <p>Body one.</p>
        <p class="u-textColor--orange"><strong>&nbsp;</strong></p>
        <p>Trailing text.</p></div>
        """
        alerts = parse_advisories(html)
        self.assertEqual([(a.title, a.description) for a in alerts], [("ALERT ONE", "Body one.\n\nTrailing text.")])

    def test_no_headers_no_alerts(self):
        """Pages without category headers produce nothing."""
        self.assertEqual(parse_advisories("<p><strong>Orphan</strong></p>"), [])
        self.assertEqual(parse_advisories(""), [])

    def test_ids_are_idempotent(self):
        """Re-running on the same page reproduces the same ids."""
        first = [a.id for a in parse_advisories(STATION_NOTICES)]
        second = [a.id for a in parse_advisories(STATION_NOTICES)]
        self.assertEqual(first, second)
        self.assertEqual(len(set(first)), 3)
        self.assertTrue(all(i.startswith("PAC_SURF_") for i in first))

    def test_id_depends_on_title_only(self):
        """Editing an alert's body keeps its id."""
        edited = STATION_NOTICES.replace("Guadalupe Station Parking Lot...", "Reopens next week.")
        before = parse_advisories(STATION_NOTICES)[1]
        after = parse_advisories(edited)[1]
        self.assertEqual(before.id, after.id)
        self.assertNotEqual(before.description, after.description)
        self.assertEqual(after.id, advisory_id("PARKING LOT CLOSED AT GUADALUPE STATION"))


class TestClassification(unittest.TestCase):
    """Test the title predicate and section classification."""

    def test_strict_sections(self):
        self.assertTrue(classify_section("Station Notices"))
        self.assertTrue(classify_section("Service Updates and Changes"))
        self.assertFalse(classify_section("Track Closures"))

    def test_emphasis_must_lead(self):
        """Only a leading <strong> counts."""
        self.assertTrue(starts_with_emphasis(first_p("<p>  <strong>Title</strong> rest</p>")))
        self.assertTrue(starts_with_emphasis(first_p("<p><!-- note --><strong>Title</strong></p>")))
        self.assertFalse(starts_with_emphasis(first_p("<p>The <strong>bus</strong></p>")))
        self.assertFalse(starts_with_emphasis(first_p("<p><em>Updated</em></p>")))
        self.assertFalse(starts_with_emphasis(first_p("<p></p>")))

    def test_classify_element(self):
        """Strict sections need the highlight; lenient ones accept either."""
        bold = first_p("<p><strong>Title</strong></p>")
        orange = first_p('<p class="u-textColor--orange">Title</p>')
        empty_orange = first_p('<p class="u-textColor--orange">&nbsp;</p>')
        header = BeautifulSoup("<h4>Next</h4>", "html.parser").find("h4")

        self.assertIs(classify_element(bold, strict=True), ElementKind.CONTENT)
        self.assertIs(classify_element(bold, strict=False), ElementKind.TITLE)
        self.assertIs(classify_element(orange, strict=True), ElementKind.TITLE)
        self.assertIs(classify_element(orange, strict=False), ElementKind.TITLE)
        self.assertIs(classify_element(empty_orange, strict=True), ElementKind.CONTENT)
        self.assertIs(classify_element(header, strict=False), ElementKind.BOUNDARY)


class TestMergeDecision(unittest.TestCase):
    """Test the pure transition function."""

    def test_scanning(self):
        self.assertIs(merge_decision(SectionState.SCANNING_TITLE, ElementKind.TITLE, "A"), Decision.START_NEW_ALERT)
        self.assertIs(merge_decision(SectionState.SCANNING_TITLE, ElementKind.CONTENT, "x"), Decision.SKIP)
        self.assertIs(
            merge_decision(SectionState.SCANNING_TITLE, ElementKind.TITLE, "Southbound"),
            Decision.START_NEW_ALERT,
        )

    def test_accumulating(self):
        state = SectionState.ACCUMULATING_BODY
        self.assertIs(merge_decision(state, ElementKind.CONTENT, "x"), Decision.ACCUMULATE)
        self.assertIs(merge_decision(state, ElementKind.TITLE, "New alert"), Decision.START_NEW_ALERT)
        self.assertIs(merge_decision(state, ElementKind.TITLE, "SOUTHBOUND trains"), Decision.MERGE_AS_SUBSECTION)
        self.assertIs(merge_decision(state, ElementKind.TITLE, "Northbound"), Decision.MERGE_AS_SUBSECTION)

    def test_boundary_ends_section(self):
        for state in SectionState:
            self.assertIs(merge_decision(state, ElementKind.BOUNDARY, "Next"), Decision.END_SECTION)


if __name__ == "__main__":
    unittest.main()
