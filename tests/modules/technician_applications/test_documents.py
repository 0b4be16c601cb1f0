"""
Unit tests for document staging and compensation.
"""

import pytest

from it13.core.exceptions import UpstreamError, ValidationError
from it13.modules.technician_applications.documents import (
    MAX_FILE_SIZE,
    DocumentStager,
    delete_documents,
    validate_document_file,
)

OWNER = "1700000000000_jean_dupont"


class TestValidateDocumentFile:
    """Tests for validate_document_file."""

    def test_missing_file(self):
        result = validate_document_file(None, "cv")
        assert result.is_valid is False
        assert result.error == "Aucun fichier fourni"

    def test_accepts_pdf_cv(self, file_factory):
        assert validate_document_file(file_factory("cv.pdf"), "cv").is_valid is True

    def test_rejects_oversized_file(self, file_factory):
        result = validate_document_file(file_factory(size=MAX_FILE_SIZE + 1), "cv")
        assert result.is_valid is False
        assert "trop volumineux" in result.error

    def test_accepts_file_at_size_limit(self, file_factory):
        assert validate_document_file(file_factory(size=MAX_FILE_SIZE), "cv").is_valid is True

    def test_rejects_image_cv(self, file_factory):
        result = validate_document_file(file_factory("cv.png", "image/png"), "cv")
        assert result.is_valid is False
        assert result.error == "Type de fichier non autorisé. Formats acceptés: PDF, DOC, DOCX"

    def test_accepts_image_diploma(self, file_factory):
        assert validate_document_file(file_factory("d.jpg", "image/jpeg"), "diplomas").is_valid

    def test_rejects_word_diploma(self, file_factory):
        result = validate_document_file(file_factory("d.doc", "application/msword"), "diplomas")
        assert result.is_valid is False
        assert result.error == "Type de fichier non autorisé. Formats acceptés: PDF, JPG, PNG"


class TestDocumentStager:
    """Tests for DocumentStager."""

    @pytest.mark.asyncio
    async def test_stage_all_uploads_in_order(
        self, blob_store, cv_file, diploma_files, motivation_letter_file
    ):
        stager = DocumentStager(blob_store, OWNER)

        documents = await stager.stage_all(cv_file, diploma_files, motivation_letter_file)

        assert documents.public_ids() == blob_store.uploads
        assert "_cv_" in documents.cv.public_id
        assert len(documents.diplomas) == 2
        assert all("_diploma_" in d.public_id for d in documents.diplomas)
        assert "_motivation_letter_" in documents.motivation_letter.public_id
        assert stager.uploaded_ids == blob_store.uploads

    @pytest.mark.asyncio
    async def test_cv_required(self, blob_store, diploma_files):
        stager = DocumentStager(blob_store, OWNER)

        with pytest.raises(ValidationError) as exc_info:
            await stager.stage_all(None, diploma_files, None)

        assert exc_info.value.message == "Le CV est requis"
        assert blob_store.uploads == []

    @pytest.mark.asyncio
    async def test_upload_failure_on_second_diploma_removes_earlier_uploads(
        self, store_factory, cv_file, diploma_files
    ):
        """CV and first diploma are deleted when the second diploma fails."""
        store = store_factory(fail_on_upload=3)
        stager = DocumentStager(store, OWNER)

        with pytest.raises(UpstreamError):
            await stager.stage_all(cv_file, diploma_files, None)

        assert len(store.uploads) == 2
        assert store.deleted == store.uploads
        assert store.remaining == []
        assert stager.uploaded_ids == []

    @pytest.mark.asyncio
    async def test_invalid_letter_removes_earlier_uploads(
        self, blob_store, cv_file, diploma_files, file_factory
    ):
        stager = DocumentStager(blob_store, OWNER)
        letter = file_factory("lettre.png", "image/png")

        with pytest.raises(ValidationError) as exc_info:
            await stager.stage_all(cv_file, diploma_files, letter)

        assert exc_info.value.errors[0].startswith("Lettre de motivation:")
        assert len(blob_store.uploads) == 3
        assert blob_store.remaining == []

    @pytest.mark.asyncio
    async def test_unexpected_store_error_is_wrapped(self, blob_store, cv_file):
        async def broken_upload(*args, **kwargs):
            raise ConnectionError("reset by peer")

        blob_store.upload = broken_upload
        stager = DocumentStager(blob_store, OWNER)

        with pytest.raises(UpstreamError) as exc_info:
            await stager.stage_all(cv_file, [], None)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_compensate_reports_failed_deletes(self, blob_store, cv_file, diploma_files):
        stager = DocumentStager(blob_store, OWNER)
        await stager.stage_all(cv_file, diploma_files, None)
        stuck = blob_store.uploads[1]
        blob_store.fail_deletes = {stuck}

        report = await stager.compensate()

        assert report.failed == [stuck]
        assert len(report.deleted) == 2
        assert stager.uploaded_ids == []

    @pytest.mark.asyncio
    async def test_compensate_twice_is_harmless(self, blob_store, cv_file):
        stager = DocumentStager(blob_store, OWNER)
        await stager.stage_all(cv_file, [], None)

        await stager.compensate()
        report = await stager.compensate()

        assert report.deleted == []
        assert len(blob_store.deleted) == 1


class TestDeleteDocuments:
    @pytest.mark.asyncio
    async def test_continues_after_failure(self, blob_store):
        blob_store.fail_deletes = {"a"}

        report = await delete_documents(blob_store, ["a", "b", "c"])

        assert report.failed == ["a"]
        assert report.deleted == ["b", "c"]
