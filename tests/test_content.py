import json

from academy.infrastructure.content import ContentRepository


def test_curriculum_loads(content):
    curriculum = content.load_curriculum()
    assert [m.id for m in curriculum.modules] == ["01-introduction", "02-core-services"]
    intro = curriculum.get("01-introduction")
    assert intro.lesson_index("02-architecture-overview") == 1
    assert intro.is_last_lesson("03-key-concepts")
    assert not intro.is_last_lesson("01-what-is-agentcore")


def test_check_loads(content):
    check = content.load_check("01-introduction")
    assert check.passing_score == 80
    assert [q.correct_answer for q in check.questions] == ["a", "b", "a", "a", "a"]


def test_missing_content(tmp_path):
    repo = ContentRepository(tmp_path)
    assert repo.load_curriculum().modules == []
    assert repo.load_check("01-introduction") is None
    assert repo.load_exercise("01-introduction") is None
    assert repo.load_lesson_knowledge("01-introduction") == ""


def test_unreadable_json_is_treated_as_missing(tmp_path):
    (tmp_path / "checks").mkdir()
    (tmp_path / "checks" / "m1.json").write_text("{not json", encoding="utf-8")
    assert ContentRepository(tmp_path).load_check("m1") is None


def test_lesson_knowledge_prefers_lesson_file(content):
    text = content.load_lesson_knowledge("01-introduction", "02-architecture-overview")
    assert "# Architecture Overview" in text
    assert "What is AgentCore?" not in text


def test_lesson_knowledge_falls_back_to_module(content):
    text = content.load_lesson_knowledge("01-introduction", "03-key-concepts")
    assert "What is AgentCore?" in text
    assert "# Architecture Overview" in text
    assert text.index("What is AgentCore?") < text.index("# Architecture Overview")


def test_exercise_loads_first_file(tmp_path):
    exercise_dir = tmp_path / "exercises" / "m1"
    exercise_dir.mkdir(parents=True)
    (exercise_dir / "b.json").write_text(json.dumps({"exerciseId": "b"}), encoding="utf-8")
    (exercise_dir / "a.json").write_text(json.dumps({"exerciseId": "a"}), encoding="utf-8")
    assert ContentRepository(tmp_path).load_exercise("m1") == {"exerciseId": "a"}
