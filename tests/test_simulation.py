import httpx

from analisis_westminster import simulation
from analisis_westminster.client import DemocracyClubClient
from analisis_westminster.data_loader import (
    ConstituencyResult,
    PartyInfo,
    dump_constituencies,
    load_constituencies,
)
from analisis_westminster.regions import Region
from analisis_westminster.report import NoSeatsError
from analisis_westminster.simulation import main, run_pipeline

import pytest


def _record(region, votes, elected):
    return ConstituencyResult(
        region=region,
        parties={key: PartyInfo(id=key, name=f"Party {key}") for key in votes},
        votes=votes,
        elected=elected,
    )


def _records():
    return [
        _record(Region.SCOTLAND, {"A": 100, "B": 50}, {"A": 1}),
        _record(Region.ENGLAND, {"C": 70, "A": 10}, {"C": 1}),
        _record(Region.SCOTLAND, {"A": 80, "B": 120}, {"B": 1}),
    ]


def test_run_pipeline_reports_each_region():
    reports = run_pipeline(_records(), [Region.SCOTLAND, Region.ENGLAND, None])

    assert list(reports) == ["Scotland", "England", "Total"]
    assert reports["Scotland"]["Party A"].votes == 180
    assert reports["England"]["Party C"].actual_seats == 1
    assert reports["Total"]["Party A"].votes == 190


def test_run_pipeline_refuses_partial_results():
    with pytest.raises(NoSeatsError, match="Wales"):
        run_pipeline(_records(), [Region.SCOTLAND, Region.WALES])


def test_cli_prints_csv_from_cache(tmp_path, capsys):
    cache = dump_constituencies(_records(), tmp_path / "constituencies.json")
    output_dir = tmp_path / "out"

    status = main(
        ["--from-cache", str(cache), "--region", "Scotland", "--output-dir", str(output_dir)]
    )

    assert status == 0
    out = capsys.readouterr().out
    assert out.splitlines() == [
        "=== Scotland ===",
        "party,votes,dHondt,actual,misrepError",
        "Party A,180,1,1,0.0",
        "Party B,170,1,1,0.0",
    ]
    written = (output_dir / "misrepresentation_scotland.csv").read_text(encoding="utf-8")
    assert written.startswith("party,votes,dHondt,actual,misrepError\n")


def test_cli_fails_without_report_for_empty_region(tmp_path, capsys):
    cache = dump_constituencies(_records(), tmp_path / "constituencies.json")

    status = main(["--from-cache", str(cache), "--region", "Northern Ireland"])

    assert status == 1
    assert "misrepError" not in capsys.readouterr().out


def test_cli_missing_cache_file(tmp_path):
    assert main(["--from-cache", str(tmp_path / "missing.json")]) == 1


def _ballot(gss_id, party_votes, winner):
    return {
        "post": {"id": gss_id},
        "candidacies": [
            {
                "person": {"id": index, "name": f"Candidate {index}"},
                "party": {"ec_id": ec_id, "name": f"Party {ec_id}"},
                "result": {"num_ballots": votes, "elected": ec_id == winner},
            }
            for index, (ec_id, votes) in enumerate(party_votes.items())
        ],
    }


BALLOTS = {
    "parl.aberdeen-north.2019-12-12": _ballot("S14000001", {"A": 100, "B": 50}, "A"),
    "parl.glasgow-east.2019-12-12": _ballot("S14000030", {"A": 80, "B": 120}, "B"),
    "parl.bath.2019-12-12": _ballot("E14000547", {"C": 300}, "C"),
}


def _api(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if "/elections/" in path:
        return httpx.Response(200, json={"ballots": [{"ballot_paper_id": key} for key in BALLOTS]})
    ballot_id = path.rstrip("/").rsplit("/", 1)[-1]
    if ballot_id in BALLOTS:
        return httpx.Response(200, json=BALLOTS[ballot_id])
    return httpx.Response(404)


def _use_transport(monkeypatch, handler):
    def factory(**kwargs):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return DemocracyClubClient(client=http, **kwargs)

    monkeypatch.setattr(simulation, "DemocracyClubClient", factory)


def test_cli_folds_while_downloading_and_writes_cache(tmp_path, capsys, monkeypatch):
    _use_transport(monkeypatch, _api)
    cache = tmp_path / "constituencies.json"

    status = main(["--region", "Scotland", "--cache", str(cache)])

    assert status == 0
    assert capsys.readouterr().out.splitlines() == [
        "=== Scotland ===",
        "party,votes,dHondt,actual,misrepError",
        "Party A,180,1,1,0.0",
        "Party B,170,1,1,0.0",
    ]
    assert len(load_constituencies(cache)) == 3


def test_cli_failed_download_exits_without_report_or_cache(tmp_path, capsys, monkeypatch):
    def handler(request):
        if request.url.path.endswith("/parl.bath.2019-12-12/"):
            return httpx.Response(503)
        return _api(request)

    _use_transport(monkeypatch, handler)
    cache = tmp_path / "constituencies.json"

    status = main(["--cache", str(cache), "--retries", "1"])

    assert status == 1
    assert "misrepError" not in capsys.readouterr().out
    assert not cache.exists()


def test_cli_rejects_cache_together_with_from_cache(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main(["--cache", str(tmp_path / "a.json"), "--from-cache", str(tmp_path / "b.json")])

    assert exc_info.value.code == 2
