"""
Unit tests for the rule-based study material generators
"""
import pytest

from studymate.services.text_analysis import (
    DEFAULT_TOPIC, GENERIC_DISTRACTOR, GENERIC_KEY_TERMS, SUMMARY_MARKER,
    contains_process, extract_key_points, extract_key_terms, extract_main_topic,
    extract_process_steps, generate_distractor, generate_flashcards, generate_quiz,
    generate_smart_summary,
)
from sample_texts import ML_TEXT, STUDY_TEXT


CELL_TEXT = (
    "Cells are the basic unit of life in every organism. "
    "They contain organelles with specialised jobs. "
    "The nucleus stores genetic information. "
    "Mitochondria release energy from food molecules. "
    "Ribosomes build proteins from amino acids. "
    "The membrane controls what enters the cell. "
    "Osmosis is defined as the movement of water across a membrane. "
    "This is the most important idea for the exam."
)

SPARSE_TEXT = "aaaa bbbb cccc dddd eeee ffff gggg hhhh"

SAMPLE_TEXTS = [ML_TEXT, CELL_TEXT, STUDY_TEXT, SPARSE_TEXT, "Short one. Tiny two! Small three? Done now."]


class TestStructuralGuarantees:
    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_artifacts_are_always_well_formed(self, text):
        """Every text of 30+ chars yields valid artifacts of bounded size"""
        assert len(text) >= 30

        assert generate_smart_summary(text).strip()

        quiz = generate_quiz(text)
        assert 2 <= len(quiz) <= 3
        for item in quiz:
            assert len(item["options"]) == 4
            assert 0 <= item["correctIndex"] <= 3
            assert item["question"] and item["explanation"]

        cards = generate_flashcards(text)
        assert 4 <= len(cards) <= 6
        assert all(card["front"] and card["back"] for card in cards)

        assert len(extract_key_points(text)) <= 5

    def test_quiz_is_deterministic(self):
        """Identical input always produces the identical quiz"""
        assert generate_quiz(STUDY_TEXT) == generate_quiz(STUDY_TEXT)
        assert generate_flashcards(STUDY_TEXT) == generate_flashcards(STUDY_TEXT)


class TestMainTopicAndTerms:
    def test_main_topic_scenario(self):
        """Most frequent long word wins, capitalized"""
        assert extract_main_topic(ML_TEXT) in {"Machine", "Learning", "Algorithms", "Networks"}

    def test_main_topic_counts_frequency(self):
        text = "Enzymes speed reactions. Enzymes lower activation energy. Reactions need enzymes."
        assert extract_main_topic(text) == "Enzymes"

    def test_main_topic_default(self):
        assert extract_main_topic(SPARSE_TEXT) == DEFAULT_TOPIC

    def test_key_terms_fall_back_to_generic_set(self):
        """Fewer than four qualifying terms gives the fixed generic list"""
        assert extract_key_terms(ML_TEXT) == GENERIC_KEY_TERMS

    def test_key_terms_skip_punctuated_and_stopwords(self):
        text = "Students examine photosynthesis, respiration, however metabolism and chemistry daily."
        assert extract_key_terms(text) == ["Students", "examine", "metabolism", "chemistry"]

    def test_distractor_lookup(self):
        assert generate_distractor("Machine") == "artificial intelligence"
        assert generate_distractor("Photosynthesis") == "respiration"
        assert generate_distractor("Geology") == GENERIC_DISTRACTOR


class TestSummary:
    def test_keyword_sentence_ranked_first(self):
        """The 'important' sentence leads the fallback summary"""
        summary = generate_smart_summary(ML_TEXT)

        assert summary.startswith("Machine learning is important")
        assert summary.endswith(SUMMARY_MARKER)

    def test_keeps_at_most_four_sentences_in_reading_order(self):
        summary = generate_smart_summary(CELL_TEXT)
        body = summary[: -len(SUMMARY_MARKER)].rstrip(".")
        sentences = body.split(". ")

        assert len(sentences) == 4
        positions = [CELL_TEXT.index(s) for s in sentences]
        assert positions == sorted(positions)
        assert "This is the most important idea for the exam" in sentences


class TestKeyPoints:
    def test_points_keep_original_order(self):
        """Selected by score, returned in reading order"""
        points = extract_key_points(CELL_TEXT)

        assert [p["id"] for p in points] == [1, 2, 3, 4, 5]
        positions = [CELL_TEXT.index(p["point"].rstrip(".")) for p in points]
        assert positions == sorted(positions)

    def test_definition_and_keyword_sentences_selected(self):
        points = [p["point"] for p in extract_key_points(CELL_TEXT)]

        assert "Osmosis is defined as the movement of water across a membrane." in points
        assert points[-1] == "This is the most important idea for the exam."

    def test_short_sentences_ignored(self):
        assert extract_key_points("Short one. Tiny two! Small three? Done now.") == []


class TestQuiz:
    def test_two_questions_without_process(self):
        quiz = generate_quiz(ML_TEXT)

        assert len(quiz) == 2
        assert quiz[0]["options"][0] == "Machine"
        assert quiz[0]["options"][1] == "artificial intelligence"
        assert quiz[1]["options"][0] == "Concept"

    def test_process_question_added(self):
        assert contains_process(STUDY_TEXT)
        quiz = generate_quiz(STUDY_TEXT)

        assert len(quiz) == 3
        assert quiz[2]["question"] == "What does the text describe?"
        assert quiz[2]["options"][quiz[2]["correctIndex"]] == "A process or method"


class TestFlashcards:
    def test_term_cards_use_context_sentence(self):
        cards = generate_flashcards(STUDY_TEXT)

        assert cards[0] == {
            "front": "Photosynthesis",
            "back": "Relates to: Photosynthesis is the process plants use to convert sunlight into chemical energy.",
        }

    def test_step_cards_capped_at_six(self):
        """Three step sentences exist but only two fit after four term cards"""
        assert len(extract_process_steps(STUDY_TEXT)) == 3
        cards = generate_flashcards(STUDY_TEXT)

        assert len(cards) == 6
        assert [c["front"] for c in cards[4:]] == ["Step 1", "Step 2"]
        assert cards[4]["back"].startswith("First, chlorophyll")

    def test_generic_terms_fall_back_to_topic(self):
        cards = generate_flashcards(SPARSE_TEXT)

        assert [c["front"] for c in cards] == GENERIC_KEY_TERMS
        assert cards[0]["back"] == f"Important concept in {DEFAULT_TOPIC}."
