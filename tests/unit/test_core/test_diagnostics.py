from concurrent.futures import ThreadPoolExecutor
from core.diagnostics import Diagnostics
from core.equity import EquityAdjuster
from core.grid import LocationCandidateGenerator
from core.models import BoundingBox
from core.scoring import LocationScorer

BBOX = BoundingBox(0.0, 0.04, 0.0, 0.04)

def test_counts_and_messages():
    diagnostics = Diagnostics()
    diagnostics.warn("soil", "service down")
    diagnostics.warn("soil", "service down")
    diagnostics.warn("coverage", "target missed")

    assert diagnostics.count("soil") == 2
    assert len(diagnostics) == 3
    assert "soil: service down" in diagnostics.messages
    assert "soil: 2 occurrences" in diagnostics.summary()

def test_message_cap():
    diagnostics = Diagnostics(max_messages=2)
    for i in range(5):
        diagnostics.warn("equity", f"failure {i}")
    assert len(diagnostics.messages) == 2
    assert diagnostics.count("equity") == 5

def test_thread_safety():
    """Concurrent warnings are all counted."""
    diagnostics = Diagnostics()
    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(lambda i: diagnostics.warn("soil", str(i)), range(200)))
    assert diagnostics.count("soil") == 200

def test_stages_keep_an_empty_shared_collector():
    """A fresh collector is empty, yet every stage must report into it."""
    diagnostics = Diagnostics()
    assert len(diagnostics) == 0

    assert LocationCandidateGenerator(BBOX, diagnostics=diagnostics).diagnostics is diagnostics
    assert LocationScorer(BBOX, diagnostics=diagnostics).diagnostics is diagnostics
    assert EquityAdjuster([], diagnostics=diagnostics).diagnostics is diagnostics
