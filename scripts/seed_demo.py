import sys
from datetime import datetime
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.db import SessionLocal, init_db  # noqa: E402
from app.services.lookup_service import add_submission, find_submission  # noqa: E402

SAMPLE_SUBMISSIONS = [
    {
        "access_code": "A9X2",
        "respondent_name": "Amina Okafor",
        "respondent_email": "amina@example.org",
        "organization": "Harbourside Facilities Ltd",
        "maturity_score": 58,
        "maturity_level": "Developing",
        "clause6_planning_score": 52,
        "clause7_support_score": 61,
        "clause8_operation_score": 66,
        "clause9_performance_score": 47,
    },
    {
        "access_code": "K7MP",
        "respondent_name": "Daniel Reyes",
        "respondent_email": "d.reyes@example.com",
        "organization": "Northgate Campus Services",
        "maturity_score": 81,
        "maturity_level": "Managed",
        "clause6_planning_score": 78,
        "clause7_support_score": 85,
        "clause8_operation_score": 83,
        "clause9_performance_score": 76,
    },
]


def main():
    init_db()
    with SessionLocal() as db:
        for sample in SAMPLE_SUBMISSIONS:
            if find_submission(db, sample["access_code"]) is not None:
                print(f"Exists: {sample['access_code']} - {sample['organization']}")
                continue
            row = add_submission(db, submitted_at=datetime.utcnow(), **sample)
            print(f"Seeded: {row.access_code} - {row.organization}")


if __name__ == "__main__":
    main()
