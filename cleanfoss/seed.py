"""
Seed the default tenant with the demo car-wash catalog and a super admin.

Safe to run repeatedly: existing rows are left untouched.

    python -m cleanfoss.seed
"""

import logging

from sqlalchemy.orm import Session

from .config import DEFAULT_COMPANY_ID, SUPER_ADMIN_EMAIL, SUPER_ADMIN_NAME
from .database import Base, SessionLocal, engine
from .models import Company, Service, ServiceCategory, ServiceExtra, User, UserRole

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("cat-exterior", "Udvendig Rengøring", "exterior"),
    ("cat-interior", "Indvendig Rengøring", "interior"),
    ("cat-premium", "Premium Service", "premium"),
    ("cat-suv", "SUV & Store Biler", "suv"),
    ("cat-express", "Express Service", "express"),
]

SERVICES = [
    {
        "id": "service-1",
        "category_id": "cat-exterior",
        "name": "Eksterior Vask",
        "description": "Grundig udvendig rengøring med håndvask, felgrengøring og voksbehandling. Perfekt til daglig vedligeholdelse.",
        "price": 350,
        "duration": 45,
        "background_color": "#3B82F6",
        "extras": [
            ("extra-1", "Dækskum behandling", "Professionel dækbehandling for blanke dæk", 75, 10),
            ("extra-2", "Motor rengøring", "Grundig rengøring af motorrum", 150, 20),
        ],
    },
    {
        "id": "service-2",
        "category_id": "cat-interior",
        "name": "Interiør Rengøring",
        "description": "Dyb rengøring af indvendige overflader, sæder, tæpper og instrumentbord. Inkluderer støvsugning og fugtrengøring.",
        "price": 400,
        "duration": 60,
        "background_color": "#10B981",
        "extras": [
            ("extra-3", "Læderbehandling", "Pleje og impregnering af læder sæder", 200, 15),
            ("extra-4", "Ozonebehandling", "Fjerner lugte og bakterier effektivt", 250, 30),
        ],
    },
    {
        "id": "service-3",
        "category_id": "cat-premium",
        "name": "Premium Komplet",
        "description": "Vores mest omfattende service - både inde og ude. Inkluderer voks, polering, læderpleje og dybderengøring.",
        "price": 750,
        "duration": 120,
        "background_color": "#8B5CF6",
        "extras": [
            ("extra-5", "Keramisk coating", "6 måneders beskyttelse mod vejr og vind", 500, 45),
            ("extra-6", "Bagagerum rengøring", "Grundig rengøring af bagagerum", 100, 15),
        ],
    },
    {
        "id": "service-4",
        "category_id": "cat-suv",
        "name": "SUV Special",
        "description": "Specialservice til store køretøjer og SUVer. Tilpasset større biler med ekstra tid og special udstyr.",
        "price": 450,
        "duration": 75,
        "background_color": "#F59E0B",
        "extras": [
            ("extra-7", "Undervogns rengøring", "Fjerner salt og snavs fra undervogn", 180, 25),
            ("extra-8", "Tagboks rengøring", "Rengøring af tagboks og rails", 120, 20),
        ],
    },
    {
        "id": "service-5",
        "category_id": "cat-express",
        "name": "Express Vask",
        "description": "Hurtig udvendig vask og tørring. Perfekt når du har travlt men vil have en ren bil.",
        "price": 200,
        "duration": 25,
        "background_color": "#EF4444",
        "extras": [
            ("extra-9", "Hurtig voks", "Spray-on voks for ekstra glans", 50, 5),
        ],
    },
]


def _add_missing(db: Session, model, **values) -> bool:
    if db.get(model, values["id"]) is not None:
        return False
    db.add(model(**values))
    return True


def seed_database(db: Session) -> dict:
    """Insert whatever part of the demo data is missing; returns counts of new rows"""
    created = {"companies": 0, "categories": 0, "services": 0, "extras": 0, "users": 0}

    try:
        if _add_missing(db, Company, id=DEFAULT_COMPANY_ID, name="CleanFoss", slug=DEFAULT_COMPANY_ID):
            created["companies"] += 1
        db.flush()

        for category_id, name, slug in CATEGORIES:
            if _add_missing(
                db, ServiceCategory, id=category_id, company_id=DEFAULT_COMPANY_ID, name=name, slug=slug
            ):
                created["categories"] += 1
        db.flush()

        for entry in SERVICES:
            extras = entry["extras"]
            fields = {k: v for k, v in entry.items() if k != "extras"}
            if _add_missing(db, Service, company_id=DEFAULT_COMPANY_ID, **fields):
                created["services"] += 1
            db.flush()

            for extra_id, name, description, price, duration in extras:
                if _add_missing(
                    db,
                    ServiceExtra,
                    id=extra_id,
                    company_id=DEFAULT_COMPANY_ID,
                    service_id=entry["id"],
                    name=name,
                    description=description,
                    price=price,
                    duration=duration,
                ):
                    created["extras"] += 1

        if not db.query(User).filter(User.email == SUPER_ADMIN_EMAIL).first():
            db.add(
                User(
                    email=SUPER_ADMIN_EMAIL,
                    name=SUPER_ADMIN_NAME,
                    role=UserRole.SUPER_ADMIN.value,
                    company_id=DEFAULT_COMPANY_ID,
                )
            )
            created["users"] += 1

        db.commit()
    except Exception:
        db.rollback()
        raise

    return created


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        logger.info("🌱 Seeding CleanFoss demo data...")
        created = seed_database(db)
        summary = ", ".join(f"{count} {name}" for name, count in created.items())
        logger.info(f"✅ Seed complete: {summary}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
