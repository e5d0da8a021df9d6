import os
import logging

from dotenv import load_dotenv

from api.deps import Services, build_services
from models.user import Role, User
from utils.config import get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def ensure_admin(services: Services, name: str, email: str, password: str) -> User:
    """Creates the admin account, or promotes an existing account with that email."""
    existing = services.users.get_by_email(email)
    if existing is None:
        logger.info(f"Creating admin account {email}")
        return services.users.create_user(name, email, password, role=Role.ADMIN)
    if existing.role != Role.ADMIN:
        logger.info(f"Promoting {email} to admin")
        return services.users.set_role(existing.id, Role.ADMIN)
    logger.info(f"Admin account {email} already exists")
    return existing


def main():
    load_dotenv()
    settings = get_settings()
    logger.info("Creating tables...")
    services = build_services(settings)

    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account")
        return
    ensure_admin(services, os.getenv("ADMIN_NAME", "Admin"), email, password)
    logger.info("Bootstrap complete")


if __name__ == "__main__":
    main()
