"""
Tests for the two-pass aggregation, view builders and summary statistics.
Run with: pytest tests/test_pipeline.py -v
"""

import pytest

from conftest import build_batch, vehicle_row
from fleet.aggregate import aggregate_batch, find_latest_date
from fleet.batch import BatchError, RowBatch, make_tab
from fleet.pipeline import process_sheet_data
from fleet.stats import compute_stats, health_score


class TestLatestDate:
    """Pass 1 finds the most recent reporting date."""

    def test_latest_date(self, sample_batch):
        assert find_latest_date(sample_batch) == ("3 July", "07-03")

    def test_latest_across_months(self):
        batch = build_batch(
            [
                ("31st July", [vehicle_row("31st July", "Pune", "MH12AB1234", "Acme", "Active", "Alligned")]),
                ("2nd August", [vehicle_row("2nd August", "Pune", "MH12AB1234", "Acme", "Active", "Alligned")]),
            ]
        )
        assert find_latest_date(batch) == ("2 August", "08-02")

    def test_no_dates_gives_sentinel(self):
        assert find_latest_date(RowBatch()) == ("Current", "")


class TestAggregation:
    """Pass 2 builds observations and month buckets."""

    def test_header_artifacts_excluded(self, sample_result):
        assert "Vehicle Number" not in [v.vehicle for v in sample_result.all_vehicles]
        assert len(sample_result.all_vehicles) == 6

    def test_observation_fields(self, sample_result):
        first = sample_result.all_vehicles[0]
        assert first.vehicle == "MH12AB1234"
        assert first.date == "1 July"
        assert first.month == "July"
        assert first.source_tab == "1st July"
        assert first.installation_date == "2024 01"
        assert first.recording == "Yes"

    def test_defaults_for_blank_cells(self, sample_result):
        second = sample_result.all_vehicles[1]
        assert second.vehicle_type == "Bus"
        assert second.installation_date == "Unknown"

    def test_remarks_cleaned(self, sample_result):
        assert sample_result.all_vehicles[3].remarks == "Power cut"

    def test_monthly_data(self, sample_result):
        assert sample_result.monthly_data == {"July": frozenset({"MH12AB1234", "MH01XY9999"})}

    def test_all_active_flag(self):
        batch = build_batch(
            [
                ("1st July", [vehicle_row("1st July", "Pune", "AAA111", "Acme", "Active", "")]),
                ("2nd July", [vehicle_row("2nd July", "Pune", "AAA111", "Acme", "Active", "")]),
                ("3rd July", [vehicle_row("3rd July", "Pune", "AAA111", "Acme", "Offlline >24Hrs", "")]),
            ]
        )
        state = aggregate_batch(batch)
        tracking = state.months["July"].active["AAA111"]
        assert tracking.all_active is False
        assert [s.status for s in tracking.statuses] == ["Active", "Active", "Offlline >24Hrs"]

    def test_all_active_true(self):
        batch = build_batch(
            [
                ("1st July", [vehicle_row("1st July", "Pune", "AAA111", "Acme", "Active", "")]),
                ("2nd July", [vehicle_row("2nd July", "Pune", "AAA111", "Acme", "Active", "")]),
            ]
        )
        assert aggregate_batch(batch).months["July"].active["AAA111"].all_active is True

    def test_unresolved_month_dropped(self):
        batch = build_batch([("Sheet1", [vehicle_row("today", "Pune", "AAA111", "Acme", "Active", "")])])
        result = process_sheet_data(batch)
        assert result.all_vehicles == ()

    def test_valid_row_never_dropped(self):
        batch = build_batch([("5th May", [vehicle_row("5th May", "", "XYZ", "", "Stopped", "")])])
        result = process_sheet_data(batch)
        assert [v.vehicle for v in result.all_vehicles] == ["XYZ"]
        assert result.all_vehicles[0].client == "Unknown"

    def test_offline_dates_distinct(self):
        batch = build_batch(
            [
                ("1st July", [vehicle_row("1st July", "Pune", "AAA111", "Acme", "Offlline >24Hrs", "")]),
                ("1st July copy", [vehicle_row("1st July", "Pune", "AAA111", "Acme", "Offlline >24Hrs", "")]),
            ]
        )
        tracking = aggregate_batch(batch).months["July"].offline["AAA111"]
        assert tracking.dates == ["1 July"]
        assert tracking.latest_remarks == "Offline"

    def test_offline_spelling_matched_verbatim(self):
        batch = build_batch([("1st July", [vehicle_row("1st July", "Pune", "AAA111", "Acme", "Offline >24Hrs", "Aligned")])])
        bucket = aggregate_batch(batch).months["July"]
        assert bucket.offline == {}
        assert bucket.alignment == {}


class TestSnapshots:
    """Client and city tables only see rows from the latest date."""

    def test_only_latest_date_rows(self, sample_result):
        acme = sample_result.client_analysis["Acme"]
        assert [v.date for v in acme] == ["3 July"]
        assert acme[0].alignment_status == "Misalligned"

    def test_dedup_per_client(self):
        batch = build_batch(
            [
                ("3rd July", [vehicle_row("3rd July", "Pune", "AAA111", "Acme", "Active", "Alligned")]),
                ("3rd July late", [vehicle_row("03 July", "Pune", "AAA111", "Acme", "Offlline >24Hrs", "")]),
            ]
        )
        result = process_sheet_data(batch)
        assert [v.vehicle for v in result.client_analysis["Acme"]] == ["AAA111"]
        assert result.client_analysis["Acme"][0].working_status == "Active"
        assert len(result.city_analysis["Pune"]) == 1

    def test_reject_list(self):
        rows = [
            vehicle_row("3rd July", "#N/A", "AAA111", "#N/A", "Active", ""),
            vehicle_row("3rd July", "Site Office", "BBB222", "Client Name", "Active", ""),
            vehicle_row("3rd July", "NA", "CCC333", "NA", "Active", ""),
            vehicle_row("3rd July", "Nagpur", "DDD444", "Gamma", "Active", ""),
        ]
        result = process_sheet_data(build_batch([("3rd July", rows)]))
        assert list(result.client_analysis) == ["Gamma"]
        assert list(result.city_analysis) == ["Nagpur"]


class TestViews:
    """The four presentation structures."""

    def test_monthly_active(self, sample_result):
        july = sample_result.gs_script_data["monthly_analysis"]["July"]
        assert july["active_vehicles"] == [{"vehicle": "MH12AB1234", "status": "Active in ALL July tabs"}]

    def test_monthly_offline(self, sample_result):
        july = sample_result.gs_script_data["monthly_analysis"]["July"]
        assert july["offline_vehicles"] == [
            {"vehicle": "MH01XY9999", "dates": ["1 July", "2 July"], "remarks": "Power cut"}
        ]

    def test_monthly_alignment(self, sample_result):
        july = sample_result.gs_script_data["monthly_analysis"]["July"]
        rows = {r["vehicle"]: r for r in july["alignment_vehicles"]}
        assert [r["vehicle"] for r in july["alignment_vehicles"]] == ["MH01XY9999", "MH12AB1234"]
        assert rows["MH12AB1234"]["timeline"] == "Alligned (1 July to 2 July) → Misalligned (3 July)"
        assert rows["MH12AB1234"]["latest_status"] == "Misalligned"
        assert rows["MH12AB1234"]["remarks"] == "tilted"
        assert rows["MH01XY9999"]["timeline"] == "Misalligned (1 July to 2 July) → Alligned (3 July)"

    def test_client_table(self, sample_result):
        table = sample_result.gs_script_data["client_analysis_table"]
        assert table["display_date"] == "3 July"
        acme, beta = table["data"]
        assert (acme["sno"], acme["client_name"]) == (1, "Acme")
        assert acme["status"] == "ISSUES: 1/1"
        assert acme["problem_vehicles"] == "MH12AB1234 (Active/Misalligned)"
        assert acme["has_problems"] is True
        assert (beta["sno"], beta["client_name"], beta["status"]) == (2, "Beta", "ALL OK")
        assert beta["problem_vehicles"] == "None"

    def test_city_table(self, sample_result):
        table = sample_result.gs_script_data["city_analysis_table"]
        assert [(r["sno"], r["city_name"]) for r in table["data"]] == [(1, "Mumbai"), (2, "Pune")]
        assert table["data"][0]["vehicles"][0]["client"] == "Beta"

    def test_comprehensive_summary(self, sample_result):
        summary = sample_result.gs_script_data["comprehensive_summary"]
        assert summary == {
            "monthly_counts": {"July": {"active": 1, "offline": 1, "alignment": 2}},
            "total_vehicles": 2,
            "total_clients": 2,
            "total_cities": 2,
            "data_source_date": "3 July",
        }


class TestStats:
    def test_sample_stats(self, sample_result):
        stats = sample_result.stats
        assert stats.total_vehicles == 6
        assert stats.active_vehicles == 4
        assert stats.offline_vehicles == 2
        assert stats.aligned_vehicles == 3
        assert stats.misaligned_vehicles == 3
        assert stats.total_clients == 2
        assert stats.total_locations == 2
        assert stats.health_score == 58

    def test_health_score(self):
        assert health_score(5, 3, 10) == 40
        assert health_score(1, 0, 8) == 6
        assert health_score(0, 0, 0) == 0

    def test_empty_stats(self):
        assert compute_stats([], {}, {}).health_score == 0


class TestEmptyAndFatal:
    """Empty batches produce empty-but-valid output; missing batches raise."""

    @pytest.mark.parametrize(
        "batch",
        [RowBatch(), RowBatch(tabs=(make_tab("1st July", [["Date", "Location"]]),)), RowBatch(tabs=(make_tab("x", []),))],
    )
    def test_empty_batch(self, batch):
        result = process_sheet_data(batch)
        assert result.stats.total_vehicles == 0
        assert result.latest_date == "Current"
        gs = result.gs_script_data
        assert gs["monthly_analysis"] == {}
        assert gs["client_analysis_table"] == {"display_date": "Recent Data", "data": []}
        assert gs["city_analysis_table"] == {"display_date": "Recent Data", "data": []}
        assert gs["comprehensive_summary"]["total_vehicles"] == 0
        assert gs["comprehensive_summary"]["data_source_date"] == "Recent Data"

    def test_missing_batch_raises(self):
        with pytest.raises(BatchError):
            process_sheet_data(None)

    def test_wrong_type_raises(self):
        with pytest.raises(BatchError):
            process_sheet_data({"tabs": []})

    def test_payload_is_plain_data(self, sample_result):
        payload = sample_result.to_payload()
        assert payload["monthly_data"] == {"July": ["MH01XY9999", "MH12AB1234"]}
        assert payload["all_vehicles"][0]["vehicle"] == "MH12AB1234"
        assert payload["stats"]["health_score"] == 58
