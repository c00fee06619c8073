"""Optional sample-data seeding, run at startup when ``seed_sample_data`` is on.

Seeding is best-effort: a failure is logged and the application starts
without sample data.
"""

import logging
from uuid import uuid4

from app.core.config import settings
from app.domain.entities import Artifact, Role, UserPreferences
from app.domain.repositories import IArtifactRepository, IUserRepository
from app.services.artifact_service import ArtifactService
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

SAMPLE_SOURCE = "SAMPLE_DATA"
SAMPLE_METADATA = {
    "creator": "Unknown",
    "current_location": "Museum Collection",
    "acquisition_date": "Various",
    "dimensions": "Varies",
    "condition": "Good",
    "provenance": "Museum acquisition",
}

# title, description, category, culture, period, material
SAMPLE_ARTIFACTS = [
    (
        "Roman Gold Aureus of Augustus",
        "A gold coin bearing the portrait of Emperor Augustus, minted between "
        "27 BC and 14 AD at the height of the early Roman Empire.",
        "COIN", "ROMAN", "ANCIENT", "Gold",
    ),
    (
        "Greek Red-Figure Amphora",
        "An amphora decorated in the red-figure technique with scenes from "
        "Greek mythology, made in Athens around 450 BC.",
        "POTTERY", "GREEK", "ANCIENT", "Ceramic",
    ),
    (
        "Egyptian Canopic Jar of Duamutef",
        "A limestone canopic jar from the mummification rite, topped with the "
        "head of Duamutef, guardian of the stomach of the deceased.",
        "SCULPTURE", "EGYPTIAN", "ANCIENT", "Limestone",
    ),
    (
        "Byzantine Gold Solidus",
        "A gold solidus of Emperor Justinian I, struck in Constantinople "
        "around 540 AD.",
        "COIN", "BYZANTINE", "MEDIEVAL", "Gold",
    ),
    (
        "Chinese Tang Dynasty Horse",
        "A glazed ceramic horse from the Tang Dynasty (618-907 AD), reflecting "
        "the place of horses in Silk Road trade.",
        "SCULPTURE", "CHINESE", "MEDIEVAL", "Ceramic",
    ),
    (
        "Viking Silver Arm Ring",
        "A twisted silver arm ring of the 10th century, worn as jewelry and "
        "used as bullion currency.",
        "JEWELRY", "VIKING", "MEDIEVAL", "Silver",
    ),
]


async def seed_artifacts(artifact_repository: IArtifactRepository) -> int:
    """Insert the sample artifacts into an empty catalogue."""
    if await artifact_repository.count() > 0:
        logger.info("Artifacts already present, skipping artifact seeding")
        return 0

    service = ArtifactService(artifact_repository)
    created = 0
    for title, description, category, culture, period, material in SAMPLE_ARTIFACTS:
        await service.create_artifact(
            Artifact(
                id=uuid4(),
                title=title,
                description=description,
                category=category,
                culture=culture,
                period=period,
                material=material,
                metadata=dict(SAMPLE_METADATA),
                source=SAMPLE_SOURCE,
            )
        )
        created += 1
    logger.info("Seeded %d sample artifacts", created)
    return created


async def seed_users(user_repository: IUserRepository) -> int:
    """Create the admin and test accounts when no users exist."""
    if await user_repository.count() > 0:
        logger.info("Users already present, skipping user seeding")
        return 0

    auth = AuthService(user_repository)
    await auth.signup(
        "admin",
        "admin@culturalvault.com",
        settings.sample_admin_password,
        first_name="CulturalVault",
        last_name="Administrator",
        role=Role.ADMIN,
        preferences=UserPreferences(
            favorite_genres=["HISTORICAL", "EDUCATIONAL"],
            interests=["ANCIENT_ROME", "GREEK_ART", "EGYPTIAN_CULTURE"],
        ),
    )
    await auth.signup(
        "testuser",
        "test@culturalvault.com",
        settings.sample_user_password,
        first_name="Test",
        last_name="User",
        preferences=UserPreferences(
            favorite_genres=["ADVENTURE", "MYSTERY"],
            interests=["MEDIEVAL_ART", "VIKING_CULTURE"],
        ),
    )
    logger.info("Seeded admin and test users")
    return 2


async def seed_sample_data(
    artifact_repository: IArtifactRepository, user_repository: IUserRepository
) -> None:
    try:
        await seed_artifacts(artifact_repository)
        await seed_users(user_repository)
    except Exception as exc:
        logger.warning("Sample data seeding failed, continuing without it: %s", exc)
