"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


LEGACY_DOCUMENT = """\
# Geography

## 1

### Transcript
```
Paris is the capital of France.
```

### Questions
--- start-question
TYPE: CLOZE
Q: The capital of France is {{c1::Paris}}.
E: Paris has been the capital since 987.
--- end-question

--- start-question
TYPE: T-F
Q: Paris is in Germany.
A: False
--- end-question

--- start-question
TYPE: Short
Q:
Name the river that flows
through Paris.
A: Seine
E: The Seine.
--- end-question

## 2

### Questions
--- start-question
TYPE: CLOZE
Q: {{c1::x}} {{c2::y}} {{c1::z}}
--- end-question
"""

ADMONITION_DOCUMENT = """\
## Lesson 1

```
AUDIO: ![[lesson-1.mp3]]
```

### Questions
````ad-question
TYPE: CLOZE
ID: custom-id-1
Q: Energy is {{c1::$E = mc^2$}} in {{c2::physics}}.
A: $E = mc^2$, physics
````

````ad-question
Q: This block has no type.
A: Nothing
````

````ad-question
TYPE: Short
Q: What is 2 + 2?
A: 4
````
"""


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def legacy_document():
    """Two groups using --- start-question blocks."""
    return LEGACY_DOCUMENT


@pytest.fixture
def admonition_document():
    """One group using ````ad-question blocks, a group audio block and a malformed block."""
    return ADMONITION_DOCUMENT


@pytest.fixture
def document_file(tmp_path):
    """Write a document to a temporary file and return its path."""

    def _write(text: str, name: str = "lesson.md") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
