from typing import Generic, TypeVar, Optional, Any, Dict, Union
from http import HTTPStatus

T = TypeVar('T')  # Generic type variable


class Result(Generic[T]):
    """
    A generic result class that represents the outcome of a conversion.

    Either carries the successful payload or an error code and message,
    together with the HTTP status the API layer should answer with.

    Attributes:
        success (bool): Indicates if the operation was successful
        data (Optional[T]): The result data (only present when success is True)
        error (Optional[str]): Error message (only present when success is False)
        error_code (Optional[str]): Machine-readable error code, e.g. "INVALID_TEMPLATE"
        status_code (HTTPStatus): HTTP status code (default: 200 for success, 400 for failure)
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
        status_code: Optional[Union[int, HTTPStatus]] = None
    ):
        self.success = success
        self.data = data
        self.error = error
        self.error_code = error_code

        # Set default status code based on success/failure if not provided
        if status_code is None:
            self.status_code = HTTPStatus.OK if success else HTTPStatus.BAD_REQUEST
        elif isinstance(status_code, HTTPStatus):
            self.status_code = status_code
        else:
            self.status_code = HTTPStatus(status_code)

    @classmethod
    def ok(cls, data: T, status_code: Union[int, HTTPStatus] = HTTPStatus.OK) -> "Result[T]":
        """
        Create a successful Result with the provided data.

        Args:
            data (T): The data to be wrapped in the Result
            status_code (Union[int, HTTPStatus], optional): HTTP status code. Defaults to 200 OK.

        Returns:
            Result[T]: A successful Result containing the provided data
        """
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: str,
        status_code: Union[int, HTTPStatus] = HTTPStatus.BAD_REQUEST
    ) -> "Result[T]":
        """
        Create a failed Result with the provided error message and code.

        Args:
            error (str): The error message describing the failure
            error_code (str): Machine-readable error code
            status_code (Union[int, HTTPStatus], optional): HTTP status code. Defaults to 400 BAD_REQUEST.

        Returns:
            Result[T]: A failed Result
        """
        return cls(success=False, error=error, error_code=error_code, status_code=status_code)

    @classmethod
    def invalid_template(cls, error: str) -> "Result[T]":
        """Failed Result for an unusable upload or template (400)."""
        return cls.fail(error, "INVALID_TEMPLATE", HTTPStatus.BAD_REQUEST)

    @classmethod
    def empty_result(cls, error: str) -> "Result[T]":
        """Failed Result for a valid template that produced nothing (422)."""
        return cls.fail(error, "EMPTY_RESULT", HTTPStatus.UNPROCESSABLE_ENTITY)

    @classmethod
    def server_error(cls, error: str = "Internal server error", error_code: str = "PARSE_ERROR") -> "Result[T]":
        """
        Create a failed Result with INTERNAL_SERVER_ERROR status code.

        Args:
            error (str, optional): The error message. Defaults to "Internal server error".
            error_code (str, optional): Error code. Defaults to "PARSE_ERROR".

        Returns:
            Result[T]: A failed Result with 500 status code
        """
        return cls.fail(error, error_code, HTTPStatus.INTERNAL_SERVER_ERROR)

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert Result to the body of an API response.

        Successful results serialize their data (pydantic models are dumped
        with their camelCase aliases); failures become
        ``{"error": {"code": ..., "message": ...}}``.

        Returns:
            Dict[str, Any]: JSON-ready response body
        """
        if self.is_success():
            if hasattr(self.data, "model_dump"):
                return self.data.model_dump(by_alias=True)  # type: ignore
            return self.data  # type: ignore
        return {
            "error": {
                "code": self.error_code,
                "message": self.error,
            }
        }
