import sys
from datetime import date, timedelta
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import select

from pipeline_crm.core.exceptions import PipelineCRMError
from pipeline_crm.database.db import create_tables, get_db_session
from pipeline_crm.models import Prospect
from pipeline_crm.services.prospect_service import ProspectService

TODAY = date.today()

DEMO_PROSPECTS = [
    {
        "name": "Ana Ruiz",
        "company": "Acme Labs",
        "email": "ana@acmelabs.mx",
        "source": "Referral",
        "stage": "contacted",
        "temperature": "hot",
        "commitment": "30_days",
        "estimated_amount": "45000",
        "next_action": "Send pricing deck",
        "next_action_date": TODAY + timedelta(days=1),
    },
    {
        "name": "Beto Salas",
        "company": "Globex",
        "email": "beto@globex.com",
        "source": "Webinar",
        "stage": "meeting_scheduled",
        "temperature": "warm",
        "estimated_amount": "12000",
        "next_action": "Discovery call",
        "next_action_date": TODAY + timedelta(days=3),
    },
    {
        "name": "Carla Mendez",
        "company": "Initech",
        "email": "carla@initech.com",
        "stage": "proposal_sent",
        "temperature": "warm",
        "estimated_amount": "30000",
        "objections": ["Budget approval pending"],
    },
    {
        "name": "Dario Vega",
        "company": "Umbrella",
        "stage": "new",
        "temperature": "cold",
    },
]


def seed_prospects():
    create_tables()
    with get_db_session() as db:
        existing = db.scalar(select(Prospect).where(Prospect.email == "ana@acmelabs.mx"))
        if existing:
            print("Demo prospects already exist.")
            return

        print("Seeding demo prospects...")
        service = ProspectService(db=db)
        try:
            for payload in DEMO_PROSPECTS:
                prospect = service.create_prospect(payload)
                print(f"Seeded prospect: {prospect.name} ({prospect.stage})")
        except PipelineCRMError as e:
            print(f"Error seeding data: {e}")


if __name__ == "__main__":
    seed_prospects()
