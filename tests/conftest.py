"""Shared fixtures: a small but complete skills matrix."""

from typing import Any, Callable, Dict, List, Optional

import pytest

from src.matrix import (
    ExtractedSkillMetadata,
    MatrixLoader,
    SkillsMatrix,
    SkillsMatrixConfig,
    merge_matrix_with_skills,
)

MATRIX_YAML = """
version: "1.0.0"

categories:
  frontend:
    id: frontend
    name: Frontend
    description: Client-side skills
    exclusive: false
    required: false
    order: 1
  backend:
    id: backend
    name: Backend
    description: Server-side skills
    exclusive: false
    required: false
    order: 2
  tooling:
    id: tooling
    name: Tooling
    description: Has no subcategories yet
    exclusive: false
    required: false
    order: 3
  framework:
    id: framework
    name: Framework
    description: UI framework
    parent: frontend
    exclusive: true
    required: true
    order: 1
  state:
    id: state
    name: State Management
    description: Client state
    parent: frontend
    exclusive: true
    required: false
    order: 2
  styling:
    id: styling
    name: Styling
    description: CSS approach
    parent: frontend
    exclusive: false
    required: false
    order: 3
  api:
    id: api
    name: API
    description: HTTP framework
    parent: backend
    exclusive: true
    required: false
    order: 1
  analytics:
    id: analytics
    name: Analytics
    description: Product analytics
    parent: backend
    exclusive: false
    required: false
    order: 2

relationships:
  conflicts:
    - skills: [tailwind, scss-modules]
      reason: Choose one styling approach
  discourages:
    - skills: [hono, scss-modules]
      reason: Unusual pairing
  recommends:
    - when: react
      suggest: [zustand, tailwind]
      reason: Works great with React
  requires:
    - skill: zustand
      needs: [react, vue]
      needs_any: true
      reason: Select a framework first
    - skill: pinia
      needs: [vue]
      reason: Pinia is for Vue
  alternatives:
    - purpose: State management
      skills: [redux, zustand]

suggested_stacks:
  - id: modern-react
    name: Modern React
    description: React with lightweight state
    audience: [startups]
    philosophy: Ship fast
    skills:
      frontend:
        framework: react
        state: zustand
        styling: tailwind
      backend:
        api: hono

skill_aliases:
  react: "frontend/react (@vince)"
  vue: "frontend/vue (@vince)"
  redux: "frontend/redux (@vince)"
  zustand: "frontend/zustand (@vince)"
  pinia: "frontend/pinia (@vince)"
  tailwind: "frontend/tailwind (@vince)"
  scss-modules: "frontend/scss-modules (@vince)"
  hono: "backend/hono (@vince)"
  express: "backend/express (@vince)"
  posthog-setup: "backend/posthog-setup (@vince)"
  posthog-analytics: "backend/posthog-analytics (@vince)"
"""

REACT = "frontend/react (@vince)"
VUE = "frontend/vue (@vince)"
REDUX = "frontend/redux (@vince)"
ZUSTAND = "frontend/zustand (@vince)"
PINIA = "frontend/pinia (@vince)"
TAILWIND = "frontend/tailwind (@vince)"
SCSS = "frontend/scss-modules (@vince)"
HONO = "backend/hono (@vince)"
EXPRESS = "backend/express (@vince)"
POSTHOG_SETUP = "backend/posthog-setup (@vince)"
POSTHOG_ANALYTICS = "backend/posthog-analytics (@vince)"


def _skill_records() -> List[Dict[str, Any]]:
    return [
        {"id": REACT, "name": "React", "category": "framework"},
        {"id": VUE, "name": "Vue", "category": "framework"},
        {
            "id": REDUX,
            "name": "Redux",
            "category": "state",
            "requires": ["react"],
        },
        {"id": ZUSTAND, "name": "Zustand", "category": "state"},
        {"id": PINIA, "name": "Pinia", "category": "state"},
        {"id": TAILWIND, "name": "Tailwind", "category": "styling", "category_exclusive": False},
        {
            "id": SCSS,
            "name": "SCSS Modules",
            "category": "styling",
            "category_exclusive": False,
        },
        {"id": HONO, "name": "Hono", "category": "api"},
        {"id": EXPRESS, "name": "Express", "category": "api"},
        {
            "id": POSTHOG_SETUP,
            "name": "PostHog Setup",
            "category": "analytics",
            "category_exclusive": False,
            "provides_setup_for": ["posthog-analytics"],
        },
        {
            "id": POSTHOG_ANALYTICS,
            "name": "PostHog Analytics",
            "category": "analytics",
            "category_exclusive": False,
            "requires_setup": ["posthog-setup"],
        },
    ]


@pytest.fixture
def matrix_yaml() -> str:
    """The sample matrix configuration as YAML."""
    return MATRIX_YAML


@pytest.fixture
def matrix_config() -> SkillsMatrixConfig:
    """The sample matrix configuration, parsed."""
    return MatrixLoader().load_from_string(MATRIX_YAML)


@pytest.fixture
def skill_records() -> List[ExtractedSkillMetadata]:
    """Extracted skill records matching the sample configuration."""
    return [ExtractedSkillMetadata(**record) for record in _skill_records()]


@pytest.fixture
def matrix(
    matrix_config: SkillsMatrixConfig, skill_records: List[ExtractedSkillMetadata]
) -> SkillsMatrix:
    """The merged sample matrix."""
    return merge_matrix_with_skills(matrix_config, skill_records)


@pytest.fixture
def build_matrix() -> Callable[..., SkillsMatrix]:
    """
    Factory for small ad-hoc matrices.

    Usage:
        m = build_matrix(
            skills=[{"id": "a", "name": "A", "category": "leaf"}],
            relationships={"conflicts": [...]},
        )
    """

    def _build(
        skills: List[Dict[str, Any]],
        relationships: Optional[Dict[str, Any]] = None,
        categories: Optional[Dict[str, Dict[str, Any]]] = None,
        aliases: Optional[Dict[str, str]] = None,
    ) -> SkillsMatrix:
        if categories is None:
            categories = {
                "top": {"id": "top", "name": "Top", "exclusive": False},
                "leaf": {"id": "leaf", "name": "Leaf", "parent": "top", "exclusive": False},
            }
        config = SkillsMatrixConfig(
            version="1.0.0",
            categories=categories,
            relationships=relationships or {},
            skill_aliases=aliases or {},
        )
        records = [ExtractedSkillMetadata(**skill) for skill in skills]
        return merge_matrix_with_skills(config, records)

    return _build
