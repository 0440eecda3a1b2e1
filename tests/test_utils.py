"""Tests for utils module."""
from pathlib import Path

import pytest


def test_create_slug_folds_accents_and_collapses_separators():
    """Title, section and year produce a clean ASCII slug."""
    from filmsync.utils import create_slug

    slug = create_slug("Le Film: Étude Drama 2025")

    assert slug == "le-film-etude-drama-2025"


def test_create_slug_is_bounded():
    from filmsync.utils import create_slug

    slug = create_slug("Una película con un título larguísimo que no cabe en ningún slug razonable")

    assert len(slug) <= 50
    assert not slug.endswith("-")
    assert not slug.startswith("-")
    assert "--" not in slug


def test_create_slug_strips_edge_punctuation():
    from filmsync.utils import create_slug

    assert create_slug("¡¿Qué?!") == "que"
    assert create_slug("  ---  ") == ""


@pytest.mark.parametrize("name,expected", [
    ("Le Film: Étude", "Le Film_ Étude"),
    ("a/b\\c", "a_b_c"),
    ("  ...Title...  ", "Title"),
    ("Many    spaces", "Many spaces"),
    ("", "unnamed_film"),
    ("...", "unnamed_film"),
])
def test_sanitize_entity_id(name, expected):
    from filmsync.utils import sanitize_entity_id

    assert sanitize_entity_id(name) == expected


@pytest.mark.parametrize("url,expected", [
    ("https://drive.google.com/drive/folders/1AbC_d-9?usp=sharing", "1AbC_d-9"),
    ("https://drive.google.com/drive/u/0/folders/XYZ123", "XYZ123"),
    ("https://drive.google.com/file/d/FILE42/view", "FILE42"),
    ("https://drive.google.com/open?id=OPEN77", "OPEN77"),
    ("not a drive link", ""),
])
def test_extract_folder_id(url, expected):
    from filmsync.utils import extract_folder_id

    assert extract_folder_id(url) == expected


def test_is_allowed_folder_is_case_insensitive():
    from filmsync.utils import is_allowed_folder

    assert is_allowed_folder("Stills")
    assert is_allowed_folder(" featured image ")
    assert is_allowed_folder("DIR")
    assert is_allowed_folder("Background")
    assert not is_allowed_folder("Random Folder")
    assert not is_allowed_folder("")


def test_is_image_mime():
    from filmsync.utils import is_image_mime

    assert is_image_mime("image/jpeg")
    assert is_image_mime("IMAGE/PNG")
    assert not is_image_mime("video/mp4")
    assert not is_image_mime("application/vnd.google-apps.folder")


def test_optimized_image_path_and_web_suffix():
    from filmsync.utils import is_web_variant, optimized_image_path, strip_web_suffix

    web = optimized_image_path(Path("/films/x/Stills/still 1.png"))

    assert web == Path("/films/x/Stills/still 1_web.jpg")
    assert is_web_variant(web.name)
    assert is_web_variant("POSTER_WEB.JPG")
    assert strip_web_suffix("still 1_web.jpg") == "still 1"
    assert strip_web_suffix("still 1.png") == "still 1.png"


def test_filename_from_url():
    from filmsync.utils import filename_from_url

    assert filename_from_url("https://site/wp-content/uploads/2025/03/Poster_web.jpg") == "poster_web"
    assert filename_from_url("") == ""


def test_parse_directors_splits_on_all_separators():
    from filmsync.utils import parse_directors

    assert parse_directors("Ana Pérez y Luis Gómez") == ["Ana Pérez", "Luis Gómez"]
    assert parse_directors("A, B & C + D") == ["A", "B", "C", "D"]
    assert parse_directors("Yolanda Reyes") == ["Yolanda Reyes"]


def test_parse_category_string():
    from filmsync.utils import parse_category_string

    assert parse_category_string("Drama, Ficción ,, ") == ["Drama", "Ficción"]
    assert parse_category_string("") == []


@pytest.mark.parametrize("duration,expected", [
    ("1:32:10", "92´10"),
    ("0:07:05", "7´05"),
    ("12:30", "12´30"),
    ("90", "0´0"),
    ("x:10:00", "0´0"),
])
def test_parse_duration(duration, expected):
    from filmsync.utils import parse_duration

    assert parse_duration(duration) == expected
