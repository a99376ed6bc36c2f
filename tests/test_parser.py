import pytest

from standup.services.parser import parse_report


def test_all_sections_are_extracted():
    text = (
        "Yesterday: Closed the Q1 budget review.\n"
        "Today: Hiring sync with the CTO.\n"
        "Blockers: Waiting on legal sign-off."
    )
    parsed = parse_report(text)

    assert parsed.yesterday == "Closed the Q1 budget review."
    assert parsed.today == "Hiring sync with the CTO."
    assert parsed.blockers == "Waiting on legal sign-off."
    assert parsed.tasks is None
    assert parsed.raw == text


def test_section_bodies_keep_internal_line_breaks():
    text = "Yesterday: first line\nsecond line\n\nToday: plan\n- a\n- b\nBlockers: none"
    parsed = parse_report(text)

    assert parsed.yesterday == "first line\nsecond line"
    assert parsed.today == "plan\n- a\n- b"
    assert parsed.blockers == "none"


def test_sections_rebuild_into_original_bodies():
    bodies = {
        "Yesterday": "Migrated billing\nto the new queue",
        "Today": "Load test the queue",
        "Blockers": "Staging DB is read-only",
    }
    text = "\n".join(f"{label}: {body}" for label, body in bodies.items())
    parsed = parse_report(text)

    assert parsed.yesterday == bodies["Yesterday"]
    assert parsed.today == bodies["Today"]
    assert parsed.blockers == bodies["Blockers"]


def test_sections_in_any_order_with_preamble():
    text = "Morning all!\nBlockers: none\nToday: write docs\nYesterday: code review"
    parsed = parse_report(text)

    assert parsed.yesterday == "code review"
    assert parsed.today == "write docs"
    assert parsed.blockers == "none"
    assert parsed.raw == text


def test_unstructured_reply_falls_back_to_today():
    text = "Mostly heads-down on the launch plan, nothing else to report."
    parsed = parse_report(text)

    assert parsed.today == text
    assert parsed.yesterday is None
    assert parsed.blockers is None
    assert parsed.raw == text


def test_markers_are_case_sensitive():
    text = "yesterday: lowercase markers\ntoday: are not recognised"
    parsed = parse_report(text)

    assert parsed.yesterday is None
    assert parsed.today == text


def test_only_some_sections_present():
    parsed = parse_report("Today: finish the RFC")

    assert parsed.today == "finish the RFC"
    assert parsed.yesterday is None
    assert parsed.blockers is None


def test_tasks_json_is_decoded():
    text = (
        "Yesterday: a\nToday: b\nBlockers: none\n"
        'Tasks: [{"id": "TASK-1", "title": "Ship", "status": "blocked"},\n'
        '        {"id": "TASK-2", "title": "Docs", "status": "done"}]'
    )
    parsed = parse_report(text)

    assert parsed.tasks == [
        {"id": "TASK-1", "title": "Ship", "status": "blocked"},
        {"id": "TASK-2", "title": "Docs", "status": "done"},
    ]
    assert parsed.blockers == "none"


def test_invalid_tasks_json_is_ignored():
    text = "Today: b\nTasks: [{not json"
    parsed = parse_report(text)

    assert parsed.tasks is None
    assert parsed.today == "b"
    assert parsed.raw == text


def test_scalar_tasks_payload_is_ignored():
    assert parse_report("Today: b\nTasks: 42").tasks is None


@pytest.mark.parametrize("text", ["", "   \n  ", None])
def test_blank_input_yields_empty_report(text):
    parsed = parse_report(text)

    assert parsed.yesterday is None
    assert parsed.today is None
    assert parsed.blockers is None
    assert parsed.tasks is None
    assert parsed.raw == (text or "")


def test_sentinel_reply_lands_in_today():
    parsed = parse_report("[Timeout after 90s: no response]")

    assert parsed.today == "[Timeout after 90s: no response]"
    assert parsed.blockers is None


def test_inline_markers_split_on_one_line():
    parsed = parse_report("Yesterday: shipped X. Today: testing Y. Blockers: prod DB is down")

    assert parsed.yesterday == "shipped X."
    assert parsed.today == "testing Y."
    assert parsed.blockers == "prod DB is down"


def test_bold_markdown_markers():
    text = "**Yesterday:** shipped X\n**Today:** testing Y\n**Blockers:** prod DB is down"
    parsed = parse_report(text)

    assert parsed.yesterday == "shipped X"
    assert parsed.today == "testing Y"
    assert parsed.blockers == "prod DB is down"
    assert parsed.raw == text


def test_bulleted_and_heading_markers():
    text = "## Yesterday: wrote the RFC\n- Today: review it\n> **Blockers**: waiting on legal"
    parsed = parse_report(text)

    assert parsed.yesterday == "wrote the RFC"
    assert parsed.today == "review it"
    assert parsed.blockers == "waiting on legal"


def test_marker_inside_a_word_is_not_a_marker():
    text = "NotToday: this is prose"
    parsed = parse_report(text)

    assert parsed.today == text
    assert parsed.blockers is None
