"""SAT topic catalogue: categories, topics and their sub-topics."""
from dataclasses import dataclass, field

ENGLISH = "English"
MATH = "Math"
CATEGORIES = (ENGLISH, MATH)

DIFFICULTIES = ("easy", "medium", "hard")


@dataclass(frozen=True)
class Topic:
    name: str
    category: str
    description: str
    sub_topics: tuple = field(default_factory=tuple)


TOPICS = [
    Topic(
        "Craft and Structure", ENGLISH,
        "Analyze word choice, text structure, point of view, purpose, and arguments.",
        ("Word Choice & Rhetoric", "Text Structure & Purpose", "Point of View"),
    ),
    Topic(
        "Information and Ideas", ENGLISH,
        "Understand central ideas, summarize texts, and analyze relationships between texts.",
        ("Central Ideas & Details", "Command of Evidence", "Inferences"),
    ),
    Topic(
        "Standard English Conventions", ENGLISH,
        "Master sentence structure, grammar, and punctuation.",
        ("Sentence Boundaries", "Punctuation", "Verb & Noun Forms"),
    ),
    Topic(
        "Expression of Ideas", ENGLISH,
        "Improve the effectiveness of language and rhetorical organization.",
        ("Rhetorical Synthesis", "Transitions"),
    ),
    Topic(
        "Heart of Algebra", MATH,
        "Master linear equations, inequalities, and functions.",
        ("Linear Equations", "Systems of Equations", "Linear Inequalities"),
    ),
    Topic(
        "Problem Solving and Data Analysis", MATH,
        "Work with ratios, percentages, and interpret data from graphs and tables.",
        ("Ratios, Rates & Proportions", "Percentages", "Data Interpretation (Graphs & Tables)"),
    ),
    Topic(
        "Passport to Advanced Math", MATH,
        "Handle complex equations, including quadratics and polynomials.",
        ("Quadratic Functions", "Polynomials", "Exponents & Radicals"),
    ),
    Topic(
        "Geometry and Trigonometry", MATH,
        "Solve problems involving shapes, angles, triangles, and trigonometric functions.",
        ("Area & Volume", "Lines, Angles & Triangles", "Circles", "Basic Trigonometry"),
    ),
]

AVATARS = ["Default", "Owl", "Rocket", "Atom", "Compass", "Lightning", "Planet", "Book"]


def topics_for_category(category: str) -> list[Topic]:
    return [t for t in TOPICS if t.category == category]


def get_topic(name: str) -> Topic | None:
    for topic in TOPICS:
        if topic.name == name:
            return topic
    return None


def is_known_topic(name: str) -> bool:
    """True for a catalogued topic or any of its sub-topics."""
    return any(name == t.name or name in t.sub_topics for t in TOPICS)
