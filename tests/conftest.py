import pytest

from fleet.batch import RowBatch, make_tab
from fleet.pipeline import process_sheet_data


HEADER = [
    "Date",
    "Location",
    "Vehicle Number",
    "Client Name",
    "Type",
    "Installation",
    "Working Status",
    "Recording",
    "Alignment Status",
    "Remarks",
]


def vehicle_row(date, location, vehicle, client, status, alignment, remarks="", vtype="Bus", installation=""):
    return [date, location, vehicle, client, vtype, installation, status, "Yes", alignment, remarks]


def build_batch(tabs):
    return RowBatch(tabs=tuple(make_tab(name, [HEADER] + rows) for name, rows in tabs))


@pytest.fixture
def sample_tabs():
    return [
        (
            "1st July",
            [
                vehicle_row("1st July", "Pune", "MH12AB1234", "Acme", "Active", "Alligned", installation="2024-01-05"),
                vehicle_row("1st July", "Mumbai", "MH01XY9999", "Beta", "Offlline >24Hrs", "Misalligned", "GPS fault", vtype=""),
            ],
        ),
        (
            "2nd July",
            [
                vehicle_row("2nd July", "Pune", "MH12AB1234", "Acme", "Active", "Alligned"),
                vehicle_row("2nd July", "Mumbai", "MH01XY9999", "Beta", "Offlline >24Hrs", "Misalligned", "**Power   cut**"),
            ],
        ),
        (
            "3rd July",
            [
                vehicle_row("3rd July", "Pune", "MH12AB1234", "Acme", "Active", "Misalligned", "tilted"),
                vehicle_row("3rd July", "Mumbai", "MH01XY9999", "Beta", "Active", "Alligned"),
                vehicle_row("3rd July", "Pune", "Vehicle Number", "Acme", "Active", "Alligned"),
            ],
        ),
    ]


@pytest.fixture
def sample_batch(sample_tabs):
    return build_batch(sample_tabs)


@pytest.fixture
def sample_result(sample_batch):
    return process_sheet_data(sample_batch)
