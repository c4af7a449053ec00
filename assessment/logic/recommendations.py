"""
Improvement Recommendations

Deterministic, template-based recommendations for a report's weak
categories. No AI/LLM usage.
"""

from typing import Dict, List

from .constants import SchoolTrack, RecommendationPriority, MAX_RECOMMENDATIONS
from .contracts import ImprovementRecommendation, WeakCategory


# category -> (recommendation, focus areas)
GENERAL_TEMPLATES: Dict[str, tuple] = {
    "academic": (
        "Focus on improving academic outcomes by implementing targeted intervention programs "
        "for struggling students, enhancing assessment practices, and diversifying the "
        "curriculum to engage all learners.",
        ["Student intervention programs", "Assessment quality", "Curriculum enrichment"],
    ),
    "attendance": (
        "Address attendance issues by establishing robust tracking systems, engaging parents "
        "in attendance improvement initiatives, and creating incentive programs for "
        "consistent attendance.",
        ["Attendance tracking", "Parent engagement", "Incentive programs"],
    ),
    "infrastructure": (
        "Prioritize infrastructure improvements by conducting a facility needs assessment, "
        "seeking funding for critical repairs, and ensuring safety standards are met across "
        "all school buildings.",
        ["Facility assessment", "Maintenance planning", "Safety compliance"],
    ),
    "teaching_quality": (
        "Enhance teaching quality through regular professional development sessions, peer "
        "observation and feedback programs, and implementation of modern teaching "
        "methodologies.",
        ["Professional development", "Peer learning", "Teaching innovation"],
    ),
    "management": (
        "Strengthen school management by improving record-keeping systems, enhancing "
        "parent-school communication, and ensuring regular SBA meetings with documented "
        "outcomes.",
        ["Record management", "Stakeholder communication", "Governance"],
    ),
    "student_welfare": (
        "Improve student welfare by establishing or strengthening guidance services, "
        "expanding extracurricular offerings, and implementing positive discipline "
        "approaches.",
        ["Counseling services", "Extracurricular activities", "Discipline policy"],
    ),
    "community": (
        "Increase community engagement by organizing regular community events, establishing "
        "partnerships with local businesses and NGOs, and participating in government "
        "education programs.",
        ["Community events", "Local partnerships", "Program participation"],
    ),
}

TAPS_TEMPLATE = (
    "Focus on strengthening weaker TAPS categories through targeted, term-length improvement "
    "actions, coaching support, and consistent monitoring of key indicators (attendance, "
    "academics, safety, and school culture).",
    ["Targeted interventions", "Staff coaching", "Monitoring and follow-up"],
)

IMPROVEMENT_PLAN_TEMPLATE = (
    "Develop a focused improvement plan for the next term, prioritizing the lowest-performing "
    "areas and setting measurable targets with weekly tracking.",
    ["Improvement planning", "Measurable targets", "Weekly tracking"],
)

MAINTAIN_STANDARDS_TEMPLATE = (
    "Continue maintaining high standards across all categories. Consider setting stretch "
    "goals and sharing best practices with other schools in your region.",
    ["Best practice sharing", "Continuous improvement", "Regional leadership"],
)


def _recommendation(category: str, priority, template: tuple) -> ImprovementRecommendation:
    text, focus_areas = template
    return ImprovementRecommendation(
        category=category,
        priority=priority,
        recommendation=text,
        focus_areas=list(focus_areas),
    )


def build_recommendations(
    weak_categories: List[WeakCategory],
    track: SchoolTrack = SchoolTrack.GENERAL,
    limit: int = MAX_RECOMMENDATIONS
) -> List[ImprovementRecommendation]:
    """
    Build improvement recommendations from weak categories (weakest first).

    - Nothing weak: one low-priority "maintain standards" recommendation
    - TAPS track: one general recommendation at the weakest category's priority
    - General track: one template per weak category, up to `limit`

    Args:
        weak_categories: Output of identify_weak_categories
        track: School track of the report
        limit: Maximum number of recommendations

    Returns:
        List of ImprovementRecommendation
    """
    if not weak_categories:
        return [_recommendation("general", RecommendationPriority.LOW, MAINTAIN_STANDARDS_TEMPLATE)]

    if SchoolTrack(track) == SchoolTrack.TAPS:
        return [_recommendation("general", weak_categories[0].priority, TAPS_TEMPLATE)]

    recommendations = [
        _recommendation(weak.category, weak.priority, GENERAL_TEMPLATES[weak.category])
        for weak in weak_categories[:limit]
        if weak.category in GENERAL_TEMPLATES
    ]
    if not recommendations:
        recommendations.append(
            _recommendation("general", weak_categories[0].priority, IMPROVEMENT_PLAN_TEMPLATE)
        )
    return recommendations
