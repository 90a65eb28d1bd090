from pydantic import BaseModel


class UploadResult(BaseModel):
    success: bool
    message: str
    file_paths: list[str] | None = None
    file_urls: list[str] | None = None
    error: str | None = None

    @classmethod
    def failure(cls, message: str, error: str | None = None) -> "UploadResult":
        return cls(success=False, message=message, error=error or None)

    def to_payload(self) -> dict:
        """JSON body: arrays only on success, ``error`` only when set."""
        return self.model_dump(exclude_none=True)
