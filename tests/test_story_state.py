"""Tests for the StoryState factory, structural check, normalization and viewer adapter."""

import re

from storysmith.story_state import (
    DEFAULT_AUTHOR,
    PLACEHOLDER_COVER_URL,
    PLACEHOLDER_PAGE_URL,
    build_assets_manifest,
    create_empty_story_state,
    is_valid_story_state,
    new_session_id,
    normalize,
    normalize_to_story_state,
    to_viewer_book,
    touch,
)

FLAT_BOOK = {
    "id": "sample-book",
    "title": "The Lantern Fox",
    "author": "Mira",
    "pages": [
        {"id": "cover", "type": "cover", "imageUrl": "/img/cover.png", "text": "The Lantern Fox"},
        {"id": "p1", "type": "spread", "imageUrl": "/img/p1.png", "text": "A fox lit a lantern."},
        {"id": "p2", "type": "spread", "imageUrl": "", "text": "The night was long."},
    ],
}


# ── create_empty_story_state ─────────────────────────────────


def test_empty_story_state_is_valid():
    ss = create_empty_story_state()
    assert is_valid_story_state(ss)
    assert ss["version"] == 1
    assert ss["story_data"]["story_title"] == "Untitled Story"
    assert ss["story_content"]["SceneJSON_array"] == []
    assert ss["story_content"]["CharacterBlock"] is None


def test_empty_story_state_session_id_format():
    ss = create_empty_story_state()
    assert re.fullmatch(r"ss_\d+_[0-9a-z]{7}", ss["metadata"]["session_id"])


def test_new_session_id_uses_given_time():
    assert new_session_id(1234).startswith("ss_1234_")


def test_overrides_merge_per_section():
    ss = create_empty_story_state({
        "story_data": {"story_title": "Moon Boats"},
        "metadata": {"last_prompt": "hi"},
    })
    assert ss["story_data"]["story_title"] == "Moon Boats"
    assert ss["story_data"]["visual_style"] is None
    assert ss["metadata"]["last_prompt"] == "hi"
    assert ss["metadata"]["session_id"].startswith("ss_")


def test_fresh_states_do_not_share_lists():
    a = create_empty_story_state()
    b = create_empty_story_state()
    a["story_content"]["SceneJSON_array"].append({"scene_id": 1})
    assert b["story_content"]["SceneJSON_array"] == []


# ── is_valid_story_state ─────────────────────────────────────


def test_invalid_inputs():
    assert not is_valid_story_state(None)
    assert not is_valid_story_state([])
    assert not is_valid_story_state("story")
    assert not is_valid_story_state({})


def test_version_must_be_number():
    ss = create_empty_story_state()
    ss["version"] = "1"
    assert not is_valid_story_state(ss)
    ss["version"] = True
    assert not is_valid_story_state(ss)


def test_scenes_must_be_list():
    ss = create_empty_story_state()
    ss["story_content"]["SceneJSON_array"] = {}
    assert not is_valid_story_state(ss)


def test_missing_section():
    ss = create_empty_story_state()
    del ss["story_data"]
    assert not is_valid_story_state(ss)


# ── normalize ────────────────────────────────────────────────


def test_normalize_valid_returns_same_object():
    ss = create_empty_story_state()
    result = normalize(ss)
    assert result.outcome == "valid"
    assert result.story_state is ss
    assert not result.gave_up


def test_normalize_flat_book():
    result = normalize(FLAT_BOOK)
    assert result.outcome == "recovered"
    ss = result.story_state
    assert is_valid_story_state(ss)
    assert ss["story_data"]["story_title"] == "The Lantern Fox"
    assert ss["metadata"]["session_id"] == "sample-book"

    scenes = ss["story_content"]["SceneJSON_array"]
    assert [s["scene_id"] for s in scenes] == ["p1", "p2"]
    assert scenes[0]["scene_status"] == "illustrated"
    assert scenes[0]["illustration_url"] == "/img/p1.png"
    assert scenes[1]["scene_status"] == "pending_illustration"
    assert scenes[1]["illustration_url"] is None

    cover = ss["story_content"]["Cover"]
    assert cover["cover_image_url"] == "/img/cover.png"
    assert cover["author_attribution"] == "Mira"


def test_normalize_flat_book_without_page_ids():
    flat = {"title": "T", "pages": [{"text": "one"}, {"text": "two"}]}
    scenes = normalize_to_story_state(flat)["story_content"]["SceneJSON_array"]
    assert [s["scene_id"] for s in scenes] == ["scene_1", "scene_2"]
    assert normalize_to_story_state(flat)["story_content"]["Cover"] is None


def test_normalize_is_idempotent():
    first = normalize_to_story_state(FLAT_BOOK)
    assert normalize_to_story_state(first) is first


def test_normalize_garbage_gives_up():
    for value in (None, 42, "text", [], {"pages": "nope"}):
        result = normalize(value)
        assert result.gave_up
        assert is_valid_story_state(result.story_state)


# ── touch / manifest ─────────────────────────────────────────


def test_touch_stamps_time_and_prompt():
    ss = create_empty_story_state({"metadata": {"last_updated": 0}})
    touch(ss, prompt="make it rain")
    assert ss["metadata"]["last_updated"] > 0
    assert ss["metadata"]["last_prompt"] == "make it rain"


def test_build_assets_manifest_skips_missing_urls():
    ss = create_empty_story_state({"story_content": {
        "CharacterBlock": {"hero_name": "Astra", "hero_image_url": "/hero.png"},
        "Cover": {"cover_image_url": "/cover.png"},
        "SceneJSON_array": [{"illustration_url": "/1.png"}, {"illustration_url": ""}],
    }})
    manifest = build_assets_manifest(ss)
    assert manifest == {
        "hero_image": "/hero.png",
        "cover_image": "/cover.png",
        "scene_images": ["/1.png"],
    }


# ── to_viewer_book ───────────────────────────────────────────


def test_viewer_book_pages_and_toc():
    ss = create_empty_story_state({
        "story_data": {"story_title": "Moon Boats"},
        "story_content": {
            "Cover": {"cover_title": "Moon Boats!"},
            "SceneJSON_array": [
                {"scene_id": 1, "scene_full_text": "Row.", "illustration_url": "/1.png"},
                {"scene_id": 2, "scene_full_text": "Sail."},
            ],
        },
    })
    book = to_viewer_book(ss)
    assert book["title"] == "Moon Boats"
    assert book["author"] == DEFAULT_AUTHOR
    assert [p["id"] for p in book["pages"]] == ["cover", 1, 2]
    assert book["pages"][0]["imageUrl"] == PLACEHOLDER_COVER_URL
    assert book["pages"][0]["text"] == "Moon Boats!"
    assert book["pages"][1]["imageUrl"] == "/1.png"
    assert book["pages"][2]["imageUrl"] == PLACEHOLDER_PAGE_URL
    assert [t["title"] for t in book["tableOfContents"]] == ["Cover", "Chapter 1", "Chapter 2"]


def test_viewer_book_without_cover():
    ss = create_empty_story_state({"story_content": {"SceneJSON_array": [{"scene_id": "a"}]}})
    book = to_viewer_book(ss)
    assert [p["type"] for p in book["pages"]] == ["spread"]
    assert book["tableOfContents"] == [{"id": "a", "title": "Chapter 1"}]


def test_viewer_book_round_trips_flat_metadata():
    flat = {**FLAT_BOOK, "tableOfContents": [{"id": "p1", "title": "Start"}]}
    book = to_viewer_book(normalize_to_story_state(flat))
    assert book["author"] == "Mira"
    assert book["tableOfContents"] == [{"id": "p1", "title": "Start"}]
    assert book["id"] == "sample-book"


def test_viewer_book_invalid_input():
    book = to_viewer_book({"nope": True})
    assert book["id"] == "unknown"
    assert book["title"] == "Error"
    assert book["pages"] == []
