import pytest
from pathlib import Path

from worklog.domain.enums import AttachmentType
from worklog.domain.models import Update
from worklog.repositories.base import AttachmentNotFoundError, UpdateNotFoundError
from worklog.services.attachment_service import AttachmentService
from worklog.services.exceptions import ValidationError
from worklog.services.update_service import UpdateService
from worklog.storage.file_store import FileStore

@pytest.fixture
def attachment_service(attachment_repo, update_repo, file_store) -> AttachmentService:
    return AttachmentService(attachment_repo, update_repo, file_store, max_upload_bytes=1024)

@pytest.fixture
def saved_update(update_repo, sample_update) -> Update:
    return update_repo.save(sample_update)


@pytest.mark.integration
class TestAttachmentService:
    """Attachments against a real database and file store"""

    def test_add_image_copies_file(
            self,
            attachment_service: AttachmentService,
            saved_update: Update,
            image_file: Path,
            file_store: FileStore,
    ):
        # Act
        attachment = attachment_service.add_image(saved_update.id, image_file, label="Login screen")

        # Assert
        assert attachment.type == AttachmentType.IMAGE
        assert attachment.filename == "screenshot.png"
        assert attachment.filepath != "screenshot.png"
        assert attachment.filepath.endswith(".png")
        assert file_store.read_bytes(attachment.filepath) == image_file.read_bytes()
        assert attachment.label == "Login screen"

    def test_add_image_rejects_non_images(
            self,
            attachment_service: AttachmentService,
            saved_update: Update,
            tmp_path: Path,
    ):
        notes = tmp_path / "notes.txt"
        notes.write_text("not an image")

        with pytest.raises(ValidationError, match="Only image files"):
            attachment_service.add_image(saved_update.id, notes)

    def test_add_image_rejects_large_files(
            self,
            attachment_service: AttachmentService,
            saved_update: Update,
            tmp_path: Path,
    ):
        big = tmp_path / "big.jpg"
        big.write_bytes(b"\xff" * 2048)

        with pytest.raises(ValidationError, match="limit"):
            attachment_service.add_image(saved_update.id, big)

    def test_add_image_missing_file(self, attachment_service: AttachmentService, saved_update: Update, tmp_path):
        with pytest.raises(ValidationError, match="No such file"):
            attachment_service.add_image(saved_update.id, tmp_path / "gone.png")

    def test_add_to_unknown_update(self, attachment_service: AttachmentService, image_file: Path):
        with pytest.raises(UpdateNotFoundError):
            attachment_service.add_image("missing", image_file)

        with pytest.raises(UpdateNotFoundError):
            attachment_service.add_link("missing", "https://example.com")

    def test_add_before_after(
            self,
            attachment_service: AttachmentService,
            saved_update: Update,
            image_file: Path,
            file_store: FileStore,
    ):
        attachment = attachment_service.add_before_after(saved_update.id, image_file, image_file, "Redesign")

        assert attachment.type == AttachmentType.BEFORE_AFTER
        assert attachment.before_path != attachment.after_path
        assert file_store.exists(attachment.before_path)
        assert file_store.exists(attachment.after_path)

    def test_before_after_needs_both(
            self,
            attachment_service: AttachmentService,
            saved_update: Update,
            image_file: Path,
    ):
        with pytest.raises(ValidationError, match="Both before and after"):
            attachment_service.add_before_after(saved_update.id, image_file, None)

    def test_add_link(self, attachment_service: AttachmentService, saved_update: Update):
        attachment = attachment_service.add_link(saved_update.id, " https://example.com/pr/7 ", "PR #7")

        assert attachment.type == AttachmentType.LINK
        assert attachment.url == "https://example.com/pr/7"

    def test_add_link_requires_url(self, attachment_service: AttachmentService, saved_update: Update):
        with pytest.raises(ValidationError, match="URL is required"):
            attachment_service.add_link(saved_update.id, "  ")

    def test_delete_removes_files(
            self,
            attachment_service: AttachmentService,
            attachment_repo,
            saved_update: Update,
            image_file: Path,
            file_store: FileStore,
    ):
        # Arrange
        attachment = attachment_service.add_before_after(saved_update.id, image_file, image_file)

        # Act
        attachment_service.delete_attachment(attachment.id)

        # Assert
        assert attachment_repo.get_by_id(attachment.id) is None
        assert not file_store.exists(attachment.before_path)
        assert not file_store.exists(attachment.after_path)

    def test_delete_missing(self, attachment_service: AttachmentService):
        with pytest.raises(AttachmentNotFoundError):
            attachment_service.delete_attachment("missing")

    def test_deleting_update_removes_attachment_files(
            self,
            attachment_service: AttachmentService,
            update_repo,
            attachment_repo,
            saved_update: Update,
            image_file: Path,
            file_store: FileStore,
    ):
        # Arrange
        image = attachment_service.add_image(saved_update.id, image_file)
        update_service = UpdateService(update_repo, attachment_repo, file_store)

        # Act
        update_service.delete_update(saved_update.id)

        # Assert
        assert not file_store.exists(image.filepath)
        assert attachment_repo.get_all() == []


@pytest.mark.unit
class TestFileStore:

    def test_rejects_path_traversal(self, file_store: FileStore):
        with pytest.raises(ValueError):
            file_store.path_for("../escape.png")

    def test_delete_missing(self, file_store: FileStore):
        assert file_store.delete("nothing.png") is False

    def test_save_bytes_keeps_extension(self, file_store: FileStore):
        name = file_store.save_bytes(b"data", "photo.jpeg")

        assert name.endswith(".jpeg")
        assert file_store.read_bytes(name) == b"data"
