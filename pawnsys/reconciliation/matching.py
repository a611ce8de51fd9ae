"""
Stock reconciliation matching

Compares the barcodes a vault is expected to hold with the barcodes
scanned during an audit. Plain Python with no Django imports so the
scanning station can run the same rules when the server is unreachable.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

MATCHED = 'matched'
UNEXPECTED = 'unexpected'
MISSING = 'missing'

OUTCOME_COMPLETE = 'complete'
OUTCOME_DISCREPANCY = 'discrepancy'


def normalize_barcode(value) -> str:
    """Scanned barcodes compare case-insensitively without surrounding whitespace"""
    return (value or '').strip().upper()


@dataclass(frozen=True)
class ExpectedItem:
    barcode: str
    item_id: Optional[int] = None
    pledge_no: Optional[str] = None
    description: str = ''
    location: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            barcode=normalize_barcode(data['barcode']),
            item_id=data.get('item_id', data.get('id')),
            pledge_no=data.get('pledge_no'),
            description=data.get('description') or '',
            location=data.get('location'),
        )


@dataclass(frozen=True)
class ScanEvent:
    barcode: str
    scanned_at: datetime
    status: str


@dataclass
class ScanResult:
    barcode: str
    status: Optional[str]
    accepted: bool = True
    warning: Optional[str] = None
    item: Optional[ExpectedItem] = None


class DuplicateScan(ScanResult):
    """A barcode that was already scanned in this session"""

    def __init__(self, barcode, status):
        super().__init__(
            barcode=barcode, status=status, accepted=False,
            warning=f"{barcode} has already been scanned",
        )


@dataclass
class MatchResult:
    matched: List[ScanEvent] = field(default_factory=list)
    unexpected: List[ScanEvent] = field(default_factory=list)
    missing: List[ExpectedItem] = field(default_factory=list)
    expected_count: int = 0
    progress: int = 0
    offline: bool = False

    @property
    def has_discrepancies(self) -> bool:
        return bool(self.missing or self.unexpected)

    @property
    def outcome(self) -> str:
        return OUTCOME_DISCREPANCY if self.has_discrepancies else OUTCOME_COMPLETE

    def as_dict(self):
        return {
            'expected_count': self.expected_count,
            'matched': [e.barcode for e in self.matched],
            'unexpected': [e.barcode for e in self.unexpected],
            'missing': [i.barcode for i in self.missing],
            'matched_count': len(self.matched),
            'unexpected_count': len(self.unexpected),
            'missing_count': len(self.missing),
            'progress': self.progress,
            'outcome': self.outcome,
            'offline': self.offline,
        }


def calculate_progress(matched_count: int, expected_count: int) -> int:
    """Percentage of expected items matched, rounded half up"""
    if expected_count <= 0:
        return 0
    return (200 * matched_count + expected_count) // (2 * expected_count)


def classify_scan(barcode, expected_barcodes) -> str:
    return MATCHED if normalize_barcode(barcode) in expected_barcodes else UNEXPECTED


def match_scans(expected_items: Iterable[ExpectedItem], scanned_items: Iterable[ScanEvent], offline=False) -> MatchResult:
    """
    Split scans into matched and unexpected and list expected items never
    scanned. Repeated scans of one barcode count once.
    """
    expected = list(expected_items)
    expected_barcodes = {normalize_barcode(item.barcode) for item in expected}

    result = MatchResult(expected_count=len(expected_barcodes), offline=offline)
    seen = set()
    for event in scanned_items:
        barcode = normalize_barcode(event.barcode)
        if barcode in seen:
            continue
        seen.add(barcode)
        if barcode in expected_barcodes:
            result.matched.append(event)
        else:
            result.unexpected.append(event)

    result.missing = [item for item in expected if normalize_barcode(item.barcode) not in seen]
    result.progress = calculate_progress(len(result.matched), result.expected_count)
    return result


class LocalReconciliationSession:
    """
    Reconciliation kept entirely in memory.

    Nothing is persisted; every result is labelled offline so callers can
    show it as unsynced.
    """
    offline = True

    def __init__(self, expected_items, reconciliation_type='adhoc', clock=None):
        self.expected_items = [
            item if isinstance(item, ExpectedItem) else ExpectedItem.from_dict(item)
            for item in expected_items
        ]
        self.reconciliation_type = reconciliation_type
        self._by_barcode = {item.barcode: item for item in self.expected_items}
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.scans: List[ScanEvent] = []
        self.started_at = self._clock()
        self.completed_at = None
        self.status = 'in_progress'

    @property
    def scanned_barcodes(self):
        return {event.barcode for event in self.scans}

    def scan(self, barcode) -> ScanResult:
        if self.status != 'in_progress':
            raise RuntimeError(f"Reconciliation is {self.status}")
        barcode = normalize_barcode(barcode)
        if not barcode:
            return ScanResult(barcode=barcode, status=None, accepted=False, warning='Empty barcode')

        for event in self.scans:
            if event.barcode == barcode:
                return DuplicateScan(barcode, event.status)

        status = classify_scan(barcode, self._by_barcode)
        self.scans.append(ScanEvent(barcode=barcode, scanned_at=self._clock(), status=status))
        return ScanResult(
            barcode=barcode,
            status=status,
            warning=None if status == MATCHED else f"{barcode} is not expected in storage",
            item=self._by_barcode.get(barcode),
        )

    def result(self) -> MatchResult:
        return match_scans(self.expected_items, self.scans, offline=True)

    @property
    def progress(self) -> int:
        return self.result().progress

    def complete(self) -> MatchResult:
        """Finish the session. Discrepancies never block completion."""
        result = self.result()
        self.status = 'completed'
        self.completed_at = self._clock()
        return result

    def cancel(self):
        self.status = 'cancelled'
        self.completed_at = self._clock()
