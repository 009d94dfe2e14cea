from decimal import Decimal

from models import db
from models.package import Package

DEFAULT_PACKAGES = [
    {
        "name": "Family Session (Bronze)",
        "name_pt": "Sessão Família (Bronze)",
        "description": "1 hour session, 10 digital images",
        "description_pt": "Sessão de 1 hora, 10 imagens digitais",
        "total_price": Decimal("150.00"),
        "deposit_price": Decimal("50.00"),
    },
    {
        "name": "Family Session (Silver)",
        "name_pt": "Sessão Família (Prata)",
        "description": "2 hour session, 20 digital images",
        "description_pt": "Sessão de 2 horas, 20 imagens digitais",
        "total_price": Decimal("300.00"),
        "deposit_price": Decimal("50.00"),
    },
    {
        "name": "Family Session (Gold)",
        "name_pt": "Sessão Família (Ouro)",
        "description": "3 hour session, all digital images + album",
        "description_pt": "Sessão de 3 horas, todas as imagens digitais + álbum",
        "total_price": Decimal("450.00"),
        "deposit_price": Decimal("50.00"),
    },
    {
        "name": "Newborn Session",
        "name_pt": "Sessão Recém-nascido",
        "description": "Studio session, up to 4 hours",
        "description_pt": "Sessão em estúdio, até 4 horas",
        "total_price": Decimal("350.00"),
        "deposit_price": Decimal("50.00"),
    },
]


def seed_packages() -> list:
    """Create the default catalog. Safe to run repeatedly; returns created names."""
    existing = {p.name for p in Package.query.all()}
    created = []
    for data in DEFAULT_PACKAGES:
        if data["name"] not in existing:
            db.session.add(Package(**data))
            created.append(data["name"])
    db.session.commit()
    return created
