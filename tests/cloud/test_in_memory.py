"""Tests for the in-memory cloud image client."""

import pytest

from image_import.cloud import (
    ImageReference,
    ImportJobRequest,
    InMemoryImageClient,
    JobState,
)
from image_import.exceptions import CloudException, CloudObjectNotFoundError

REQUEST = ImportJobRequest(
    image_name="boot-img",
    bucket_name="b1",
    region="us-south",
    image_filename="o1",
    storage_type="tier1",
)


@pytest.fixture(name="client")
def client_fixture() -> InMemoryImageClient:
    return InMemoryImageClient("instance-1")


def test_request_body() -> None:
    """Test the import request serializes to the remote API body."""
    assert REQUEST.to_dict() == {
        "imageName": "boot-img",
        "bucketName": "b1",
        "bucketAccess": "public",
        "region": "us-south",
        "imageFilename": "o1",
        "storageType": "tier1",
    }


def test_job_state_terminal() -> None:
    """Test which job states are terminal."""
    assert not JobState.QUEUED.is_terminal
    assert not JobState.IN_PROGRESS.is_terminal
    assert JobState.COMPLETED.is_terminal
    assert JobState.FAILED.is_terminal


async def test_import_job_lifecycle(client: InMemoryImageClient) -> None:
    """Test an import job materializes the image once completed."""
    assert await client.get_import_job("instance-1") is None

    job_ref = await client.create_import_job(REQUEST)
    job = await client.get_import_job("instance-1")
    assert job is not None
    assert job.job_id == job_ref.job_id
    assert job.state == JobState.QUEUED
    assert await client.list_images() == []

    client.start_job(job_ref.job_id)
    assert client.get_job(job_ref.job_id).state == JobState.IN_PROGRESS

    image = client.complete_job(job_ref.job_id)
    assert image.name == "boot-img"
    assert await client.list_images() == [image]
    assert client.get_job(job_ref.job_id).state == JobState.COMPLETED
    assert client.requests == [REQUEST]
    assert client.calls["create_import_job"] == 1


async def test_get_import_job_other_instance(client: InMemoryImageClient) -> None:
    """Test jobs are only visible to their own workspace."""
    await client.create_import_job(REQUEST)
    assert await client.get_import_job("instance-2") is None


async def test_failed_job(client: InMemoryImageClient) -> None:
    """Test a failed job does not materialize an image."""
    job_ref = await client.create_import_job(REQUEST)
    client.fail_job(job_ref.job_id, "bad image file")
    job = await client.get_import_job("instance-1")
    assert job is not None
    assert job.state == JobState.FAILED
    assert job.message == "bad image file"
    assert await client.list_images() == []


async def test_delete(client: InMemoryImageClient) -> None:
    """Test deleting images and jobs."""
    image = client.add_image("boot-img", image_id="image-a")
    assert image == ImageReference(image_id="image-a", name="boot-img", state="active")
    job_ref = await client.create_import_job(REQUEST)

    await client.delete_image("image-a")
    await client.delete_job(job_ref.job_id)
    assert client.images == []
    assert await client.get_import_job("instance-1") is None

    with pytest.raises(CloudObjectNotFoundError, match="image image-a not found"):
        await client.delete_image("image-a")
    with pytest.raises(CloudObjectNotFoundError, match="not found"):
        await client.delete_job(job_ref.job_id)


async def test_inject_failure(client: InMemoryImageClient) -> None:
    """Test injected failures are raised until cleared."""
    client.inject_failure("list_images", "service unavailable")
    with pytest.raises(CloudException, match="list_images failed: service unavailable"):
        await client.list_images()
    with pytest.raises(CloudException):
        await client.list_images()
    assert client.calls["list_images"] == 2

    client.clear_failures()
    assert await client.list_images() == []
