"""Tests that verify canonical regeneration of fixture diagrams matches .expect.txt golden files."""

from pathlib import Path

import pytest

from mermaid_sync import generate, parse

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def find_example_pairs() -> list[tuple[str, Path, Path]]:
    """Find all .mmd files that have a matching .expect.txt file."""
    pairs = []
    for mmd_file in sorted(FIXTURES_DIR.glob("*.mmd")):
        expect_file = FIXTURES_DIR / f"{mmd_file.stem}.expect.txt"
        if expect_file.exists():
            pairs.append((mmd_file.stem, mmd_file, expect_file))
    return pairs


EXAMPLE_PAIRS = find_example_pairs()


@pytest.mark.parametrize("name,mmd_file,expect_file", EXAMPLE_PAIRS, ids=[p[0] for p in EXAMPLE_PAIRS])
def test_example_matches_expect(name: str, mmd_file: Path, expect_file: Path) -> None:
    """Parse a .mmd file, regenerate it and compare against the .expect.txt golden file."""
    result = parse(mmd_file.read_text())
    assert result.success, result.errors
    expected = expect_file.read_text().rstrip("\n")
    assert generate(result.diagram) == expected, f"Output for {name} differs from .expect.txt"


@pytest.mark.parametrize("name,mmd_file,expect_file", EXAMPLE_PAIRS, ids=[p[0] for p in EXAMPLE_PAIRS])
def test_expected_output_is_stable(name: str, mmd_file: Path, expect_file: Path) -> None:
    """Golden files are already canonical: regenerating them changes nothing."""
    expected = expect_file.read_text().rstrip("\n")
    assert generate(parse(expected).diagram) == expected


def test_fixtures_present():
    assert len(EXAMPLE_PAIRS) >= 4
