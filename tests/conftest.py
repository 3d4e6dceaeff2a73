from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from bmad_kb.store import ContentStore


def write_file(root: Path, relative: str, content: str) -> Path:
    """Write dedented *content* to ``root / relative``, creating parents."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


DEV_AGENT = """\
    ---
    name: dev
    displayName: James the Developer
    role: Full Stack Developer
    persona: Pragmatic engineer who ships working code.
    primaryDomain: development
    responsibilities:
      - Implement stories
      - Write tests
    activationInstructions:
      - Read the story file
      - Confirm the acceptance criteria
    commands:
      - name: implement
        description: Implement the current story
        syntax: "*implement {story}"
        example: "*implement 1.2"
      - help: Show available commands
    dependencies:
      - type: task
        name: implement-story
        required: true
      - type: template
        name: story-tmpl
      - type: checklist
        name: story-dod
      - type: data
        name: technical-preferences
    worksWith:
      - qa
      - sm
    ---

    # Developer

    Body text is ignored by the parser.
"""

PM_AGENT = """\
    # Product Manager

    ```yaml
    name: pm
    displayName: John the PM
    role: Product Manager
    dependencies:
      tasks:
        - create-doc
      templates:
        - prd-tmpl
    ```
"""

QA_ARCHITECT_AGENT = """\
    ---
    name: qa-architect
    role: Quality Architect
    ---
"""

IMPLEMENT_STORY_TASK = """\
    ---
    name: implement-story
    description: Implement a user story end to end
    agents:
      - dev
    inputs:
      - name: story
        type: file
        required: true
    steps:
      - description: Read the story
        action: read
      - description: Write the code
        action: code
    outputs:
      - name: code
        location: src/
    ---
"""

CREATE_DOC_TASK = """\
    ---
    description: Create a document from a template
    agents:
      - pm
      - architect
    steps:
      - Pick a template
      - Fill in every section
    ---
"""

PRD_TEMPLATE = """\
    template:
      id: prd-tmpl
      name: Product Requirements
      type: planning-document
    description: Product requirements document
    sections:
      - id: goals
        title: Goals
        required: true
      - name: requirements
        subsections:
          - name: functional
    variables:
      - name: project_name
        required: true
      - product_owner
    llmInstructions:
      - Ask before assuming
"""

STORY_TEMPLATE = """\
    name: story-tmpl
    description: User story
    type: development-story
    sections:
      - name: story
"""

STORY_DOD_CHECKLIST = """\
    ---
    name: story-dod
    description: Story definition of done
    severity: high
    items:
      - id: tests
        description: All tests pass
        autoFixable: false
        required: true
      - description: Code reviewed
    ---
"""

GREENFIELD_WORKFLOW = """\
    workflow:
      name: greenfield-fullstack
      description: Build a new full stack app
      type: greenfield
      phases:
        - name: planning
          agent: pm
          tasks: [create-doc]
          nextPhase: development
        - agent: dev
          tasks: [implement-story]
      metadata:
        estimatedDuration: 2 weeks
        complexity: medium
"""

BROWNFIELD_WORKFLOW = """\
    name: brownfield-service
    type: brownfield
    phases:
      - name: analysis
        agent: ghost
"""

TEAM_ALL = """\
    bundle:
      name: team-all
      description: Every core agent
    agents:
      - pm
      - dev
    workflows:
      - greenfield-fullstack
    collaboration:
      - from: pm
        to: dev
        via: prd
"""

GAME_DESIGNER_AGENT = """\
    ---
    name: game-designer
    role: Game Designer
    ---
"""

GAME_PACK_METADATA = """\
    name: bmad-2d-game-dev
    version: 2.1.0
    description: 2D game development
    category: games
    agents:
      - game-designer
"""


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """A populated ``bmad-core`` directory with a sibling ``expansion-packs``."""
    root = tmp_path / "bmad-core"
    write_file(root, "agents/dev.md", DEV_AGENT)
    write_file(root, "agents/pm.md", PM_AGENT)
    write_file(root, "agents/qa-architect.md", QA_ARCHITECT_AGENT)
    write_file(root, "tasks/implement-story.md", IMPLEMENT_STORY_TASK)
    write_file(root, "tasks/create-doc.md", CREATE_DOC_TASK)
    write_file(root, "templates/prd-tmpl.yaml", PRD_TEMPLATE)
    write_file(root, "templates/story-tmpl.yaml", STORY_TEMPLATE)
    write_file(root, "checklists/story-dod.md", STORY_DOD_CHECKLIST)
    write_file(root, "workflows/greenfield-fullstack.yaml", GREENFIELD_WORKFLOW)
    write_file(root, "workflows/brownfield-service.yaml", BROWNFIELD_WORKFLOW)
    write_file(root, "agent-teams/team-all.yaml", TEAM_ALL)
    write_file(root, "data/bmad-kb.md", "# BMAD Knowledge Base\n\nCore concepts.\n")
    write_file(root, "data/technical-preferences.md", "Prefer Python.\n")

    packs = tmp_path / "expansion-packs"
    write_file(packs, "game-dev/agents/game-designer.md", GAME_DESIGNER_AGENT)
    write_file(packs, "game-dev/pack-metadata.yaml", GAME_PACK_METADATA)
    (packs / "infra").mkdir(parents=True)
    return root


@pytest.fixture
def store(content_root: Path) -> ContentStore:
    return ContentStore(content_root)
