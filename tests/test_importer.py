# tests/test_importer.py
import json

import pytest

from notio.db import StudySetNotFoundError
from notio.flashcards import get_cards
from notio.grades import add_grade, add_subject, list_grades, list_subjects
from notio.importer import export_grades_csv, import_cards, import_grades_csv, read_card_pairs
from notio.studysets import create_study_set


def test_read_tab_separated_text(tmp_path):
    f = tmp_path / "cards.txt"
    f.write_text("dog\tHund\ncat - Katze\n\nbroken line\nbird\t\n", encoding="utf-8")
    assert read_card_pairs(str(f)) == [("dog", "Hund"), ("cat", "Katze")]


def test_read_csv(tmp_path):
    f = tmp_path / "cards.csv"
    f.write_text('term,definition\n"Zelle, tierisch",ohne Zellwand\nsolo\n', encoding="utf-8")
    assert read_card_pairs(str(f)) == [("Zelle, tierisch", "ohne Zellwand")]


def test_read_json(tmp_path):
    f = tmp_path / "cards.json"
    f.write_text(json.dumps([
        {"term": "H2O", "definition": "Wasser"},
        {"term": "", "definition": "leer"},
    ]), encoding="utf-8")
    assert read_card_pairs(str(f)) == [("H2O", "Wasser")]


def test_read_json_skips_malformed_entries(tmp_path):
    f = tmp_path / "cards.json"
    f.write_text(json.dumps([
        {"term": "H2O", "definition": "Wasser"},
        "oops",
        None,
        42,
        {"term": None, "definition": "x"},
        {"term": "NaCl"},
    ]), encoding="utf-8")
    assert read_card_pairs(str(f)) == [("H2O", "Wasser")]


def test_read_json_object_has_no_pairs(tmp_path):
    f = tmp_path / "cards.json"
    f.write_text(json.dumps({"term": "H2O", "definition": "Wasser"}), encoding="utf-8")
    assert read_card_pairs(str(f)) == []


def test_import_cards_appends(tmp_db, tmp_path):
    s = create_study_set(tmp_db, "Vokabeln", [("dog", "Hund")])
    f = tmp_path / "more.tsv"
    f.write_text("cat\tKatze\nmouse\tMaus\n", encoding="utf-8")
    assert import_cards(tmp_db, s.id, str(f)) == 2
    assert [c.term for c in get_cards(tmp_db, s.id)] == ["dog", "cat", "mouse"]


def test_import_cards_unknown_set(tmp_db, tmp_path):
    f = tmp_path / "more.txt"
    f.write_text("cat\tKatze\n", encoding="utf-8")
    with pytest.raises(StudySetNotFoundError):
        import_cards(tmp_db, "missing", str(f))


def test_export_grades_csv(tmp_db):
    s = add_subject(tmp_db, "Mathe", "main", 9)
    add_grade(tmp_db, s.id, "written", 2.0, weight=2.0, date="2024-02-01", name="SA 1")
    text = export_grades_csv(list_subjects(tmp_db, 9), list_grades(tmp_db))
    lines = text.strip().splitlines()
    assert lines[0] == "subject,category,grade_level,type,name,value,weight,date"
    assert lines[1] == "Mathe,main,9,written,SA 1,2.0,2.0,2024-02-01"


def test_import_grades_csv_creates_subjects_and_skips_duplicates(tmp_db):
    s = add_subject(tmp_db, "Mathe", "main", 9)
    add_grade(tmp_db, s.id, "written", 2.0, weight=2.0, date="2024-02-01")
    text = (
        "\ufeffsubject,category,grade_level,type,name,value,weight,date\n"
        "Mathe,main,9,written,SA 1,2.0,2.0,2024-02-01\n"
        "mathe,main,9,oral,,1.0,1.0,2024-02-10\n"
        "Kunst,minor,9,written,,3.0,1.0,2024-02-11\n"
        "Kunst,minor,9,written,,9.0,1.0,2024-02-12\n"
        "Physik,main,9,homework,,2.0,1.0,2024-02-12\n"
        "Chemie,main,9,oral,,abc,1.0,2024-02-12\n"
    )
    result = import_grades_csv(tmp_db, text, grade_level=9)
    assert result == {"imported": 2, "skipped": 4}
    assert [x.name for x in list_subjects(tmp_db, 9)] == ["Kunst", "Mathe"]
    assert len(list_grades(tmp_db)) == 3


def test_export_then_import_into_new_level(tmp_db):
    s = add_subject(tmp_db, "Mathe", "main", 9)
    add_grade(tmp_db, s.id, "written", 2.0, date="2024-02-01")
    text = export_grades_csv(list_subjects(tmp_db, 9), list_grades(tmp_db))
    assert import_grades_csv(tmp_db, text, grade_level=10) == {"imported": 1, "skipped": 0}
    assert import_grades_csv(tmp_db, text, grade_level=10) == {"imported": 0, "skipped": 1}


def test_import_grades_csv_skips_non_finite_numbers(tmp_db):
    text = (
        "subject,category,grade_level,type,name,value,weight,date\n"
        "Mathe,main,9,written,,2.0,nan,2024-02-01\n"
        "Mathe,main,9,written,,inf,1.0,2024-02-02\n"
        "Mathe,main,9,oral,,2.0,inf,2024-02-03\n"
        "Mathe,main,9,oral,,1.5,1.0,2024-02-04\n"
    )
    assert import_grades_csv(tmp_db, text, grade_level=9) == {"imported": 1, "skipped": 3}
    grades = list_grades(tmp_db)
    assert [(g.value, g.weight) for g in grades] == [(1.5, 1.0)]


def test_import_grades_csv_only_nan_row(tmp_db):
    text = (
        "subject,category,grade_level,type,name,value,weight,date\n"
        "Mathe,main,9,written,,2.0,nan,2024-02-01\n"
    )
    assert import_grades_csv(tmp_db, text, grade_level=9) == {"imported": 0, "skipped": 1}
    assert list_grades(tmp_db) == []
