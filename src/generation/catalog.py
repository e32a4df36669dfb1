"""
Static local topic catalog.

A compact copy of the upper-secondary mathematics curriculum
(guiding idea > topic > subtopics) used when the generator service is
unreachable. Keys stay in German to match the wire format of TopicRef.
"""

from __future__ import annotations

from src.practice.models import TopicRef

TOPIC_CATALOG: dict[str, dict[str, list[str]]] = {
    "Funktionaler Zusammenhang": {
        "Analysis": [
            "Ableitungsregeln",
            "Kurvendiskussion",
            "Extremwertprobleme",
            "Integralrechnung",
            "Exponentialfunktionen",
            "Trigonometrische Funktionen",
        ],
        "Funktionen": [
            "Lineare Funktionen",
            "Quadratische Funktionen",
            "Potenzfunktionen",
            "Funktionsscharen",
        ],
    },
    "Raum und Form": {
        "Analytische Geometrie": [
            "Vektoren",
            "Geraden im Raum",
            "Ebenen",
            "Lagebeziehungen",
            "Abstandsberechnung",
        ],
    },
    "Daten und Zufall": {
        "Stochastik": [
            "Bedingte Wahrscheinlichkeit",
            "Binomialverteilung",
            "Erwartungswert",
            "Hypothesentests",
            "Normalverteilung",
        ],
    },
    "Zahl": {
        "Algebra": [
            "Lineare Gleichungssysteme",
            "Potenzgesetze",
            "Logarithmen",
        ],
    },
}


def get_local_topics(leitidee: str | None = None) -> list[TopicRef]:
    """Flatten the catalog into topic references, optionally for one guiding idea."""
    topics = []
    for idea, themes in TOPIC_CATALOG.items():
        if leitidee and idea != leitidee:
            continue
        for thema, subtopics in themes.items():
            topics.extend(
                TopicRef(leitidee=idea, thema=thema, unterthema=sub) for sub in subtopics
            )
    return topics


def complete_topic(topic: TopicRef) -> TopicRef:
    """
    Fill missing guiding idea / subtopic from the catalog.

    Topics that are already complete, or unknown to the catalog, are
    returned unchanged.
    """
    if topic.leitidee and topic.thema and topic.unterthema:
        return topic
    for idea, themes in TOPIC_CATALOG.items():
        for thema, subtopics in themes.items():
            if topic.unterthema and topic.unterthema in subtopics:
                return TopicRef(leitidee=idea, thema=thema, unterthema=topic.unterthema)
            if topic.thema == thema and not topic.unterthema:
                return TopicRef(leitidee=idea, thema=thema, unterthema=subtopics[0])
    return topic
