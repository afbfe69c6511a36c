"""
Rule-based study material generation: summaries, quizzes, flashcards and key points
"""
import re
from collections import Counter
from typing import Dict, List

# -------------------- VOCABULARY --------------------

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")
ALPHA_ONLY_RE = re.compile(r"^[a-zA-Z]+$")

TOPIC_STOPWORDS = {
    "the", "is", "in", "and", "to", "of", "that", "this", "with", "for", "on",
    "are", "which", "what", "how", "when", "where", "why",
}
TERM_STOPWORDS = {"however", "although", "because", "therefore", "additionally"}

IMPORTANT_KEYWORDS = ["important", "key", "main", "primary", "essential", "crucial", "significant", "major"]
DEFINITION_PATTERNS = ["is defined as", "means that", "refers to", "is called", "known as"]
PROCESS_INDICATORS = ["process", "step", "stage", "phase", "cycle", "method", "procedure"]
STEP_INDICATORS = ["first", "second", "third", "then", "next", "after", "finally", "step"]

DEFAULT_TOPIC = "Learning Concepts"
GENERIC_KEY_TERMS = ["Concept", "Theory", "Application", "Method"]
SUMMARY_MARKER = " [AI Enhanced Summary]"

DISTRACTORS = {
    "machine": "artificial intelligence",
    "learning": "training",
    "photosynthesis": "respiration",
    "water": "air",
    "cycle": "process",
    "computer": "technology",
    "programming": "coding",
    "algorithm": "method",
    "data": "information",
    "network": "system",
}
GENERIC_DISTRACTOR = "Related but different concept"

MAX_SUMMARY_SENTENCES = 4
MAX_KEY_POINTS = 5
MIN_QUIZ_QUESTIONS = 2
MAX_QUIZ_QUESTIONS = 3
MIN_FLASHCARDS = 4
MAX_FLASHCARDS = 6
MAX_PROCESS_STEPS = 3


# -------------------- HELPERS --------------------

def split_sentences(text: str) -> List[str]:
    return SENTENCE_SPLIT_RE.split(text)


def has_important_keywords(sentence: str) -> bool:
    lower = sentence.lower()
    return any(keyword in lower for keyword in IMPORTANT_KEYWORDS)


def is_definition(sentence: str) -> bool:
    lower = sentence.lower()
    return any(pattern in lower for pattern in DEFINITION_PATTERNS)


def contains_process(text: str) -> bool:
    lower = text.lower()
    return any(indicator in lower for indicator in PROCESS_INDICATORS)


def capitalize_first_letter(word: str) -> str:
    return word[:1].upper() + word[1:]


def generate_distractor(correct_answer: str) -> str:
    return DISTRACTORS.get(correct_answer.lower(), GENERIC_DISTRACTOR)


def extract_main_topic(text: str) -> str:
    """Most frequent meaningful word in the text, capitalized."""
    counts: Counter = Counter()
    for word in text.lower().split():
        clean = NON_ALNUM_RE.sub("", word)
        if len(clean) > 4 and clean not in TOPIC_STOPWORDS:
            counts[clean] += 1
    if not counts:
        return DEFAULT_TOPIC
    # most_common keeps first-seen order among equal counts
    return capitalize_first_letter(counts.most_common(1)[0][0])


def extract_key_terms(text: str) -> List[str]:
    long_words = [w for w in text.split() if len(w) > 6]
    unique_words = list(dict.fromkeys(long_words))[:8]
    terms = [
        w for w in unique_words
        if w.lower() not in TERM_STOPWORDS and ALPHA_ONLY_RE.match(w)
    ]
    if len(terms) >= 4:
        return terms[:4]
    return list(GENERIC_KEY_TERMS)


def extract_process_steps(text: str) -> List[str]:
    steps = []
    for sentence in split_sentences(text):
        lower = sentence.lower()
        if len(sentence) < 100 and any(indicator in lower for indicator in STEP_INDICATORS):
            steps.append(sentence.strip())
        if len(steps) >= MAX_PROCESS_STEPS:
            break
    return steps


# -------------------- SUMMARY --------------------

def generate_smart_summary(text: str) -> str:
    """Pick up to four sentences, favouring keyword-bearing and longer ones, in reading order."""
    sentences = [s for s in split_sentences(text) if len(s.strip()) > 10]
    ranked = sorted(
        enumerate(sentences),
        key=lambda item: (not has_important_keywords(item[1]), -len(item[1]), item[0]),
    )[:MAX_SUMMARY_SENTENCES]
    chosen = [sentence.strip() for _, sentence in sorted(ranked)]
    return ". ".join(chosen) + "." + SUMMARY_MARKER


# -------------------- KEY POINTS --------------------

def score_sentence(sentence: str, position: int) -> float:
    score = min(len(sentence) / 50, 3)
    if has_important_keywords(sentence):
        score += 2
    if is_definition(sentence):
        score += 2
    score += max(0, (10 - position) / 5)
    return score


def extract_key_points(text: str) -> List[Dict]:
    sentences = [s for s in split_sentences(text) if len(s.strip()) > 15]
    scored = [(score_sentence(s, i), i, s.strip()) for i, s in enumerate(sentences)]
    top = sorted(scored, key=lambda item: -item[0])[:MAX_KEY_POINTS]
    top.sort(key=lambda item: item[1])
    return [
        {"id": n, "point": sentence if sentence.endswith(".") else sentence + "."}
        for n, (_, _, sentence) in enumerate(top, start=1)
    ]


# -------------------- QUIZ --------------------

def _question(question: str, options: List[str], explanation: str) -> Dict:
    return {"question": question, "options": options, "correctIndex": 0, "explanation": explanation}


def generate_quiz(text: str) -> List[Dict]:
    main_topic = extract_main_topic(text)
    key_terms = extract_key_terms(text)
    questions: List[Dict] = []

    questions.append(_question(
        "What is the main topic of this text?",
        [main_topic, generate_distractor(main_topic), generate_distractor(main_topic), "A completely different subject"],
        f"The text primarily focuses on {main_topic}, as evidenced by the content and key terms.",
    ))

    if key_terms:
        term = key_terms[0]
        questions.append(_question(
            "Which of these is a key concept mentioned in the text?",
            [term, generate_distractor(term), "Unrelated concept 1", "Unrelated concept 2"],
            f"{term} is a key concept discussed in the material.",
        ))

    if contains_process(text):
        questions.append(_question(
            "What does the text describe?",
            ["A process or method", "A historical event", "A fictional story", "A product review"],
            "The text describes a process or method based on the content structure.",
        ))

    while len(questions) < MIN_QUIZ_QUESTIONS:
        questions.append(_question(
            "What type of educational content is this?",
            ["Study material for learning", "Entertainment content", "Advertising material", "Personal diary entry"],
            "This appears to be educational study material designed for learning purposes.",
        ))

    return questions[:MAX_QUIZ_QUESTIONS]


# -------------------- FLASHCARDS --------------------

def generate_flashcards(text: str) -> List[Dict]:
    main_topic = extract_main_topic(text)
    sentences = [s for s in split_sentences(text) if len(s.strip()) > 10]
    cards: List[Dict] = []

    for term in extract_key_terms(text):
        context = next(
            (s for s in sentences if term.lower() in s.lower() and len(s) < 100),
            None,
        )
        back = f"Relates to: {context.strip()}." if context else f"Important concept in {main_topic}."
        cards.append({"front": term, "back": back})

    if contains_process(text):
        for n, step in enumerate(extract_process_steps(text), start=1):
            if len(cards) < MAX_FLASHCARDS:
                cards.append({"front": f"Step {n}", "back": step})

    defaults = [
        {"front": "Main Topic", "back": f"The primary subject is {main_topic}."},
        {"front": "Key Concept", "back": "Central idea discussed in the material."},
        {"front": "Learning Objective", "back": "Understanding the core concepts presented."},
        {"front": "Study Focus", "back": "Focus on the main ideas and relationships."},
    ]
    while len(cards) < MIN_FLASHCARDS:
        cards.append(defaults[len(cards)])

    return cards[:MAX_FLASHCARDS]
