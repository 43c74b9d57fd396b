import math

import pytest

from analisis_westminster.aggregation import Aggregate, aggregate_constituencies
from analisis_westminster.data_loader import ConstituencyResult, PartyInfo
from analisis_westminster.regions import Region
from analisis_westminster.report import (
    NoSeatsError,
    misrepresentation_report,
    report_to_csv,
    report_to_frame,
)


def _record(votes, elected):
    return ConstituencyResult(
        region=Region.SCOTLAND,
        parties={key: PartyInfo(id=key, name=f"Party {key}") for key in votes},
        votes=votes,
        elected=elected,
    )


def _final():
    return aggregate_constituencies(
        [
            _record({"A": 100, "B": 50}, {"A": 1}),
            _record({"A": 80, "B": 120}, {"B": 1}),
        ]
    )


def test_report_compares_actual_with_simulated_seats():
    aggregate = _final()

    report = misrepresentation_report(aggregate)

    entry = report["Party A"]
    assert entry.votes == 180
    assert entry.actual_seats == 1
    assert entry.misrepresentation_error == (1 - aggregate.dhondt_seats["A"]) / 2


def test_overrepresented_party_has_positive_error():
    aggregate = aggregate_constituencies(
        [
            _record({"A": 51, "B": 49}, {"A": 1}),
            _record({"A": 51, "B": 49}, {"A": 1}),
            _record({"A": 51, "B": 49}, {"A": 1}),
            _record({"A": 51, "B": 49}, {"A": 1}),
        ]
    )

    report = misrepresentation_report(aggregate)

    assert report["Party A"].dhondt_seats == 2
    assert report["Party A"].misrepresentation_error == pytest.approx(0.5)
    assert report["Party B"].misrepresentation_error == pytest.approx(-0.5)


def test_report_without_seats_is_an_explicit_error():
    with pytest.raises(NoSeatsError):
        misrepresentation_report(Aggregate())
    with pytest.raises(ZeroDivisionError):
        misrepresentation_report(Aggregate())


def test_missing_values_default_to_zero():
    aggregate = Aggregate(
        votes={},
        parties={"X": PartyInfo(id="X", name="Party X")},
        dhondt_seats={},
        actual_seats={},
        seats=1,
    )

    entry = misrepresentation_report(aggregate)["Party X"]

    assert (entry.votes, entry.dhondt_seats, entry.actual_seats) == (0, 0, 0)
    assert not math.isnan(entry.misrepresentation_error)


def test_csv_keeps_column_names_and_order():
    csv_text = report_to_csv(misrepresentation_report(_final()))

    assert csv_text.splitlines() == [
        "party,votes,dHondt,actual,misrepError",
        "Party A,180,1,1,0.0",
        "Party B,170,1,1,0.0",
    ]


def test_frame_has_one_row_per_party():
    frame = report_to_frame(misrepresentation_report(_final()))

    assert list(frame.columns) == ["party", "votes", "dHondt", "actual", "misrepError"]
    assert frame["party"].tolist() == ["Party A", "Party B"]
