"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject a test database or a fake category backend.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
        remote: Optional category backend. Defaults to the local sqlite backend.
    """

    def __init__(self, config: Config, db_manager=None, remote=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.categories import CategoryService
        from services.remote import LocalCategoryBackend
        from services.store import CategoryStore
        from services.mutations import MutationController

        self.categories = CategoryService(self.db_manager)
        self.remote = remote or LocalCategoryBackend(self.categories)
        self.store = CategoryStore(self.remote)
        self.mutations = MutationController(self.remote, self.store)

    def ensure_system_categories(self):
        """Create the protected categories named in the configuration."""
        return self.categories.ensure_system_categories(self.config.system_categories)
