"""Constant values used for tests."""

from datetime import datetime
from datetime import timezone
from pathlib import Path

THIS_DIR = Path(__file__).parent
PROJECT_DIR = (THIS_DIR / "../").resolve()

# Azurite development storage connection string
TEST_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=http;AccountName=devstoreaccount1;"
    "AccountKey=Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw==;"
    "TableEndpoint=http://127.0.0.1:10002/devstoreaccount1;"
)
TEST_TABLE_NAME = "restorerequests"
STATUS_BASE_URI = "https://backup.example.com/api/restore"

# Tuesday of ISO week 22 / 23 of 2020
WEEK_22_2020 = datetime(2020, 5, 26, 10, 30, tzinfo=timezone.utc)
WEEK_23_2020 = datetime(2020, 6, 2, 10, 30, tzinfo=timezone.utc)
