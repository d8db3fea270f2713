"""
Tests for message composer - variant selection and rendering.
"""

import pytest

import app.services.messaging.message_composer as mc
from app.services.messaging.message_composer import (
    MessageComposer,
    get_composer,
    render_message,
    reset_cache,
)


def _write_copy(copy_file, content: str) -> None:
    """Write temp YAML with UTF-8 so emoji and £ load correctly."""
    copy_file.write_text(content, encoding="utf-8")


@pytest.fixture
def copy_file(tmp_path, monkeypatch):
    """Temporary copy directory swapped in for app/copy."""
    copy_dir = tmp_path / "copy"
    copy_dir.mkdir()
    monkeypatch.setattr(mc, "COPY_DIR", copy_dir)
    reset_cache()
    return copy_dir / "en.yml"


def test_message_composer_loads_yaml(copy_file):
    _write_copy(
        copy_file,
        """
test_welcome:
  - "Hello {name}!"
  - "Hi {name}!"
""",
    )

    composer = MessageComposer(locale="en")

    assert len(composer._copy_data["test_welcome"]) == 2


def test_same_seed_gets_same_variant(copy_file):
    _write_copy(
        copy_file,
        """
test_message:
  - "Variant 1"
  - "Variant 2"
  - "Variant 3"
""",
    )
    composer = MessageComposer(locale="en")

    seed = "1:whatsapp:+447700900123"
    first = composer._select_variant("test_message", seed)

    assert all(composer._select_variant("test_message", seed) == first for _ in range(5))
    assert first in {"Variant 1", "Variant 2", "Variant 3"}


def test_variants_spread_across_seeds(copy_file):
    _write_copy(
        copy_file,
        """
test_message:
  - "Variant 1"
  - "Variant 2"
""",
    )
    composer = MessageComposer(locale="en")

    chosen = {composer._select_variant("test_message", f"1:whatsapp:+4477009{i:05d}") for i in range(50)}

    assert chosen == {"Variant 1", "Variant 2"}


def test_no_seed_uses_first_variant(copy_file):
    _write_copy(
        copy_file,
        """
test_message:
  - "First"
  - "Second"
""",
    )
    assert MessageComposer(locale="en")._select_variant("test_message") == "First"


def test_plain_string_and_block_values(copy_file):
    _write_copy(
        copy_file,
        """
single: "Just one"
block: |-
  Line one
  Line two {x}
""",
    )
    composer = MessageComposer(locale="en")

    assert composer.render("single", seed="abc") == "Just one"
    assert composer.render("block", x="here") == "Line one\nLine two here"


def test_render_message_uses_configured_locale(copy_file):
    _write_copy(
        copy_file,
        """
test_template:
  - "Your total is £{total}."
""",
    )

    assert render_message("test_template", total="150.00") == "Your total is £150.00."


def test_missing_key_renders_marker(copy_file):
    _write_copy(copy_file, "other: hi\n")
    assert MessageComposer(locale="en").render("nope") == "[MISSING: nope]"


def test_missing_placeholder_returns_template(copy_file):
    _write_copy(copy_file, 'greet: "Hello {name}"\n')
    assert MessageComposer(locale="en").render("greet") == "Hello {name}"


def test_missing_copy_file_gives_empty_copy(copy_file):
    composer = MessageComposer(locale="fr")
    assert composer._copy_data == {}


def test_get_composer_is_cached_until_reset(copy_file):
    _write_copy(copy_file, "greet: one\n")
    first = get_composer()
    assert get_composer() is first

    reset_cache()
    assert get_composer() is not first


def test_shipped_copy_has_every_flow_message():
    reset_cache()
    composer = MessageComposer(locale="en")
    for key in (
        "welcome",
        "ask_checkout",
        "ask_guests",
        "quote",
        "booking_confirmed",
        "booking_failed",
        "start_over",
        "invalid_date",
        "invalid_date_range",
        "generic_prompt",
        "system_error",
        "lookup_error",
        "not_configured",
        "unavailable",
    ):
        assert key in composer._copy_data, key
