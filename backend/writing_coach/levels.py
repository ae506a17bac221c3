from __future__ import annotations
from typing import Dict, List, Optional

from .errors import InvalidParameter
from .schemas import LevelProfile, WordCountRange


# CEFR band ordering, lowest first
CEFR_ORDER: List[str] = ["A1", "A2", "B1", "B2", "C1", "C2"]

_TEACHER = "You are an English writing teacher"


def _profile(
	code: str,
	name: str,
	role: str,
	vocabulary: str,
	focus: List[str],
	tone: str,
	template: str,
	words: tuple[int, int],
) -> LevelProfile:
	low, high = words
	return LevelProfile(
		code=code,
		name=name,
		system_role=role,
		vocabulary_constraint=vocabulary,
		correction_focus=tuple(focus),
		tone_instruction=tone,
		feedback_template=template,
		word_count=WordCountRange(min=low, max=high, label=f"{low}-{high} words"),
	)


_PROFILES: List[LevelProfile] = [
	# ---- CEFR bands ----
	_profile(
		"A1", "CEFR A1",
		f"{_TEACHER} for absolute beginners.",
		"Use only the most common 500 English words; short sentences of one clause.",
		["spelling", "capitalization and end punctuation", "present simple of be/have", "word order"],
		"Be very warm and encouraging. Praise every correct sentence before pointing out at most three mistakes.",
		"Great job! You wrote 'I like cats.' Remember: we say 'I have a dog', not 'I has a dog'.",
		(20, 50),
	),
	_profile(
		"A2", "CEFR A2",
		f"{_TEACHER} for elementary learners.",
		"Use everyday vocabulary about family, school, hobbies and routines; avoid idioms.",
		["present simple vs present continuous", "past simple regular and irregular verbs", "articles", "basic connectors (and, but, because)"],
		"Be encouraging and concrete. Explain each rule in one short sentence with an example.",
		"Nice story about your weekend! 'I goed to the park' should be 'I went to the park' because 'go' is irregular.",
		(50, 100),
	),
	_profile(
		"B1", "CEFR B1",
		f"{_TEACHER} for intermediate learners preparing for PET.",
		"Everyday and familiar-topic vocabulary; simple phrasal verbs are acceptable.",
		["tense consistency", "comparatives and superlatives", "linking words", "paragraphing"],
		"Be supportive but honest. Point out recurring patterns rather than every slip.",
		"Your opinion is clear. Try linking your ideas with 'however' or 'as a result' instead of starting every sentence with 'And'.",
		(100, 160),
	),
	_profile(
		"B2", "CEFR B2",
		f"{_TEACHER} for upper-intermediate learners preparing for FCE.",
		"Topic-specific vocabulary, common collocations and a range of linkers are expected.",
		["subject-verb agreement", "relative clauses", "conditionals", "collocations", "cohesion and coherence"],
		"Be strict but encouraging. Grade against upper-intermediate standards and explain why each correction matters.",
		"Well organised argument. 'Make a research' is a collocation error; we 'do research'.",
		(140, 190),
	),
	_profile(
		"C1", "CEFR C1",
		f"{_TEACHER} and examiner for advanced learners.",
		"Precise, varied and idiomatic vocabulary; register must suit the task.",
		["register and tone", "complex sentence structures", "nominalisation", "hedging", "precision of word choice"],
		"Be demanding and precise. Treat simple errors as serious and comment on style, not only grammar.",
		"Persuasive and well structured, but 'a lot of' is too informal for this report; consider 'a considerable number of'.",
		(220, 260),
	),
	_profile(
		"C2", "CEFR C2",
		f"{_TEACHER} and examiner for proficient users.",
		"Near-native lexical range including idiom, nuance and low-frequency words.",
		["nuance and connotation", "rhetorical control", "stylistic variety", "subtle grammatical accuracy"],
		"Be rigorous, as a proficiency examiner would. Focus on what separates a good text from an excellent one.",
		"A sophisticated piece. The second paragraph would gain impact if the concession came before the claim.",
		(280, 340),
	),
	# ---- School and exam tiers ----
	_profile(
		"primary1_2", "Primary grades 1-2",
		f"{_TEACHER} for young children aged 6 to 8.",
		"Basic vocabulary only: colors, animals, family, numbers, toys.",
		["spelling of basic words", "capital letters", "simple sentence patterns (This is..., I like...)"],
		"Be playful and very gentle. Use simple words and lots of praise.",
		"Wonderful! 'I like red.' is perfect. Let's write 'I have a cat' with 'have'.",
		(10, 30),
	),
	_profile(
		"primary3_4", "Primary grades 3-4",
		f"{_TEACHER} for children aged 8 to 10.",
		"Daily routines, hobbies and weather; short simple paragraphs.",
		["present simple third person -s", "plural nouns", "prepositions of time and place"],
		"Be kind and encouraging. Correct only the most important mistakes.",
		"Good job describing your day! 'He play football' should be 'He plays football'.",
		(30, 60),
	),
	_profile(
		"primary5_6", "Primary grades 5-6",
		f"{_TEACHER} for older primary pupils.",
		"Elementary vocabulary for past events, future plans and describing places.",
		["past simple", "future with will / be going to", "adjective order", "basic connectors"],
		"Be encouraging and clear. Give one tip the pupil can use next time.",
		"Your trip sounds fun! 'Yesterday I visit my grandma' needs the past tense: 'visited'.",
		(50, 80),
	),
	_profile(
		"junior1", "Junior high grade 1",
		f"{_TEACHER} for lower-secondary students.",
		"Lower-intermediate vocabulary about school life and friends.",
		["tense consistency", "articles", "simple narrative structure"],
		"Be encouraging and structured. Explain each correction with a short rule.",
		"Nice narrative! Keep the whole story in the past tense.",
		(60, 80),
	),
	_profile(
		"junior2", "Junior high grade 2",
		f"{_TEACHER} for lower-secondary students.",
		"Intermediate vocabulary for opinions, comparisons and letters.",
		["comparatives", "modal verbs", "letter format", "giving reasons"],
		"Be supportive but honest. Highlight how to give clearer reasons.",
		"Your letter is polite. 'More better' is a mistake; just say 'better'.",
		(70, 90),
	),
	_profile(
		"junior3", "Junior high grade 3",
		f"{_TEACHER} preparing students for the high school entrance exam.",
		"Intermediate vocabulary with complex sentences expected.",
		["present perfect vs past simple", "complex sentences", "exam task completion"],
		"Be exam-focused and clear. Score against entrance exam standards.",
		"Good structure. 'I have finished it yesterday' should be 'I finished it yesterday'.",
		(80, 100),
	),
	_profile(
		"senior1", "Senior high grade 1",
		f"{_TEACHER} for upper-secondary students.",
		"Upper-intermediate, more formal vocabulary for social issues.",
		["logical reasoning", "formal register", "non-finite verbs"],
		"Be strict but encouraging. Comment on logic as well as grammar.",
		"Clear viewpoint. Replace 'kids' with 'children' in formal writing.",
		(100, 120),
	),
	_profile(
		"senior2", "Senior high grade 2",
		f"{_TEACHER} for upper-secondary students.",
		"Advanced vocabulary for describing charts, literature and arguments.",
		["data description language", "inversion and emphasis", "structured argument"],
		"Be rigorous. Expect structured arguments and varied sentences.",
		"Good use of data. 'The number increased sharply' is more precise than 'went up a lot'.",
		(100, 120),
	),
	_profile(
		"senior3", "Senior high grade 3 (Gaokao)",
		f"{_TEACHER} and Gaokao marker.",
		"Gaokao-standard rich vocabulary and complex grammar.",
		["complex grammar", "advanced vocabulary", "coherence devices", "task completion"],
		"Be strict and exam-oriented. Score against Gaokao marking bands.",
		"Strong essay. Use 'not only... but also' to vary your second paragraph.",
		(100, 120),
	),
	_profile(
		"university1_2", "University years 1-2 (CET-4)",
		f"{_TEACHER} and CET-4 marker.",
		"CET-4 academic or semi-formal vocabulary.",
		["clear thesis", "paragraph unity", "academic connectors", "sentence accuracy"],
		"Be strict and concise. Grade against CET-4 bands.",
		"Clear thesis. The second body paragraph needs a topic sentence.",
		(120, 180),
	),
	_profile(
		"university3_4", "University years 3-4 (CET-6)",
		f"{_TEACHER} and CET-6 marker.",
		"CET-6 vocabulary with sophisticated argument language.",
		["sentence variety", "argument depth", "lexical precision"],
		"Be demanding. Expect sophisticated arguments and varied sentence patterns.",
		"Sophisticated ideas. 'Nowadays, more and more people' is overused; try a precise opening.",
		(150, 200),
	),
	_profile(
		"graduate", "Graduate entrance exam",
		f"{_TEACHER} and graduate entrance exam marker.",
		"Academic, formal vocabulary with rigorous argument.",
		["academic rigor", "formal tone", "picture/chart interpretation", "cohesion"],
		"Be rigorous and formal. Mark as a graduate entrance examiner would.",
		"Rigorous analysis. Avoid contractions such as 'don't' in academic writing.",
		(160, 200),
	),
	_profile(
		"toefl", "TOEFL",
		f"{_TEACHER} and TOEFL writing rater.",
		"Academic and campus vocabulary for integrated and independent tasks.",
		["development of ideas", "organization", "language use", "integration of sources"],
		"Be objective. Rate as a TOEFL rater and relate comments to the scoring rubric.",
		"Well developed example. Your conclusion repeats the introduction word for word; paraphrase it.",
		(300, 350),
	),
	_profile(
		"ielts", "IELTS",
		f"{_TEACHER} and IELTS writing examiner.",
		"IELTS Task 1 data language and Task 2 argumentative vocabulary.",
		["task response", "coherence and cohesion", "lexical resource", "grammatical range and accuracy"],
		"Be objective and rubric-driven. Comment using the four IELTS criteria.",
		"Task response is strong. Lexical resource would improve with less repetition of 'important'.",
		(250, 300),
	),
]

LEVEL_PROFILES: Dict[str, LevelProfile] = {p.code.lower(): p for p in _PROFILES}


def list_levels() -> List[LevelProfile]:
	return list(_PROFILES)


def find_level_profile(level: Optional[str]) -> Optional[LevelProfile]:
	if not level:
		return None
	return LEVEL_PROFILES.get(level.strip().lower())


def get_level_profile(level: Optional[str]) -> LevelProfile:
	profile = find_level_profile(level)
	if profile is None:
		raise InvalidParameter(f"Unknown level: {level!r}", details={"levels": [p.code for p in _PROFILES]})
	return profile
