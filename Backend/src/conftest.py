import pytest
from rest_framework.test import APIClient

from users.models import User
from users.services import issue_token

PASSWORD = "StrongPassw0rd!"


@pytest.fixture(autouse=True)
def storage_root(settings, tmp_path):
    """Chaque test ecrit ses fichiers dans un dossier temporaire."""
    root = tmp_path / "storage"
    root.mkdir()
    settings.STORAGE_ROOT = root
    settings.REPORT_TEMPLATE_PATH = tmp_path / "templates" / "report_template.docx"
    return root


@pytest.fixture
def make_user(db):
    def _make(email, role=User.Role.AUDITOR, password=PASSWORD):
        return User.objects.create_user(email=email, password=password, role=role)
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com")


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@example.com", role=User.Role.ADMIN)


@pytest.fixture
def client_for():
    """APIClient authentifie par bearer token pour un utilisateur donne."""
    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user)}")
        return client
    return _client
