import io
import logging
from typing import Callable, Optional

from streamsurf.core.config import settings
from streamsurf.core.errors import UpstreamError
from streamsurf.utils.s3 import make_s3_internal, public_object_url

logger = logging.getLogger(__name__)


class MediaStorage:
    """
    Stockage des médias (vidéos, miniatures) dans S3/MinIO.
    Aucune logique SQL ici ; les erreurs du fournisseur deviennent des UpstreamError.
    """

    def __init__(
        self,
        *,
        s3_client_factory: Callable[[], object] = make_s3_internal,
        bucket: Optional[str] = None,
    ):
        self._s3_factory = s3_client_factory
        self.bucket = bucket or settings.S3_BUCKET

    def upload(self, raw: bytes, *, key: str, mime: str, sha256: Optional[str] = None) -> str:
        """Charge l'objet et retourne son URL publique."""
        s3 = self._s3_factory()
        extra = {"ContentType": mime}
        if sha256:
            extra["Metadata"] = {"sha256": sha256}
        try:
            s3.upload_fileobj(
                Fileobj=io.BytesIO(raw),
                Bucket=self.bucket,
                Key=key,
                ExtraArgs=extra,
            )
        except Exception as e:
            logger.error("S3 upload failed for %s: %s", key, e)
            raise UpstreamError("Error uploading media to storage") from e
        return public_object_url(bucket=self.bucket, key=key)

    def delete(self, key: str) -> None:
        s3 = self._s3_factory()
        try:
            s3.delete_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            logger.error("S3 delete failed for %s: %s", key, e)
            raise UpstreamError("Error deleting media from storage") from e

    def delete_quietly(self, key: Optional[str]) -> bool:
        """Suppression best-effort : journalise l'échec sans le propager."""
        if not key:
            return True
        try:
            self.delete(key)
        except UpstreamError:
            logger.warning("Media object %s could not be deleted, continuing", key)
            return False
        return True
