"""TCP client."""
from contextlib import contextmanager
from pathlib import Path
import socket
import tarfile
import tempfile
import time
from typing import Iterator, List
import zipfile

import py7zr
from pydantic import BaseModel, ConfigDict, Field, FilePath, IPvAnyAddress

from checked_math.common.operations import OperationRequest, OperationResult
from checked_math.common.parser import RequestParser
from checked_math.common.protocol import (
    ProtocolError,
    Status,
    decode_response,
    encode_request,
    recv_frame,
    status_name,
)
from checked_math.core.dispatcher import Operation, arity
from checked_math.core.errors import BadCommandError, ErrorKind, error_for


class AdmissionDeniedError(ConnectionError):
    """Raised when the server refuses a session because its limit is reached."""


class MathSession:
    """
    One admitted session over an open connection.

    Sessions are created by ``MathClient.session()``; each ``evaluate``
    call is one request frame and one response frame.
    """

    def __init__(self, conn: socket.socket) -> None:
        self.conn = conn

    def _exchange(self, op_id: int, operands: List[int]):
        self.conn.sendall(encode_request(op_id, operands))
        frame = recv_frame(self.conn)
        if not frame:
            raise ProtocolError("server closed the session")
        return decode_response(frame)

    def evaluate(self, operation: int, *operands: int) -> int:
        """
        Evaluate one operation on the server.

        Unknown operation identifiers are sent as-is so that the server
        answers them with BAD_COMMAND.

        :param int operation: Operation identifier
        :param int operands: Input operands

        :return: Result of the operation
        :rtype: int
        :raises MathError: Subclass matching the server's error status
        :raises ProtocolError: If the server answers with an unexpected status
        :raises ValueError: If a known operation gets fewer operands than its arity
        """
        try:
            n_inputs = arity(operation)
        except BadCommandError:
            n_inputs = None
        else:
            if len(operands) < n_inputs:
                raise ValueError(
                    f"{Operation(operation).name} expects {n_inputs} operand(s), got {len(operands)}"
                )
        status, vector = self._exchange(int(operation), list(operands))
        if status == Status.OK and n_inputs is not None:
            # The result sits right after the inputs
            return vector[n_inputs]
        if any(status == kind for kind in ErrorKind):
            raise error_for(ErrorKind(status), f"{status_name(status)} from server")
        raise ProtocolError(f"unexpected status {status_name(status)} ({status})")

    def submit(self, request: OperationRequest) -> OperationResult:
        """
        Evaluate a parsed request and wrap the outcome, errors included.

        :param OperationRequest request: Validated request

        :return: Result carrying either the value or the error status
        :rtype: OperationResult
        """
        status, vector = self._exchange(request.operation.value, request.operands)
        if status == Status.OK:
            return OperationResult(request=request, result=vector[len(request.operands)])
        try:
            return OperationResult(request=request, status=Status(status))
        except ValueError:
            raise ProtocolError(f"unexpected status {status}") from None


class MathClient(BaseModel):
    """
    TCP client responsible for sending math requests to the server and receiving results.

    The TCP client:
    - opens sessions, honouring the server's admission handshake
    - sends fixed-size request frames and decodes the responses
    - replays request files (plain text or archives) and writes the results
    """

    # Make the Pydantic instance immutable (read-only), to prevent errors
    # that could be caused by changes to the network configuration during execution.
    model_config = ConfigDict(frozen=True)

    host: IPvAnyAddress = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=9000, ge=1, le=65535, description="Server TCP port")
    timeout: float = Field(default=5.0, gt=0, description="Socket timeout in seconds")
    busy_retries: int = Field(default=0, ge=0, description="Extra attempts when the server is busy")
    busy_delay: float = Field(default=0.1, ge=0, description="Seconds between busy retries")

    def _connect(self) -> socket.socket:
        """
        Connect and read the admission handshake.

        :return: Connected socket of an admitted session
        :rtype: socket.socket
        :raises AdmissionDeniedError: If the server reports BUSY
        :raises ProtocolError: If the handshake is missing or malformed
        """
        s = socket.create_connection((str(self.host), self.port), timeout=self.timeout)
        try:
            frame = recv_frame(s)
            if not frame:
                raise ProtocolError("server closed the connection before the handshake")
            status, _ = decode_response(frame)
            if status == Status.BUSY:
                raise AdmissionDeniedError(f"server {self.host}:{self.port} is busy")
            if status != Status.READY:
                raise ProtocolError(f"unexpected handshake status {status_name(status)}")
        except BaseException:
            s.close()
            raise
        return s

    @contextmanager
    def session(self) -> Iterator[MathSession]:
        """
        Open a session and close it on exit.

        A BUSY handshake is retried ``busy_retries`` times before giving up.

        :return: Admitted session
        :rtype: MathSession
        :raises AdmissionDeniedError: If the server is still busy after all retries
        :raises ProtocolError: If the handshake is missing or malformed
        """
        attempt = 0
        while True:
            try:
                s = self._connect()
                break
            except AdmissionDeniedError:
                if attempt >= self.busy_retries:
                    raise
                attempt += 1
                time.sleep(self.busy_delay)

        with s:
            yield MathSession(s)

    def evaluate(self, operation: Operation, *operands: int) -> int:
        """Evaluate a single operation in a one-off session."""
        with self.session() as session:
            return session.evaluate(operation, *operands)

    def send_file(self,
        input_file: FilePath,
        output_file: FilePath,
    ) -> List[OperationResult]:
        """
        Replay a request file against the server and write one result line per request.

        :param FilePath input_file: Path to the input file or archive
        :param FilePath output_file: Path where results will be written

        :return: Results in request order
        :rtype: List[OperationResult]
        :raises ValueError: If the archive format is unsupported, contains no .txt
            file, or a request line is malformed
        """
        # Load requests from file or archive
        if input_file.suffix == ".txt":
            # Plain text file: read directly
            content = input_file.read_text()
        else:
            # Archive file: extract the first text file found
            content = self._extract_archive(input_file)

        requests = RequestParser.parse(content)

        results: List[OperationResult] = []
        with self.session() as session, output_file.open("w", encoding="utf-8") as f_out:
            for request in requests:
                result = session.submit(request)
                results.append(result)
                # Flush so progress survives an interrupted run
                f_out.write(result.describe() + "\n")
                f_out.flush()
        return results

    def _extract_archive(self, archive_path: FilePath) -> str:
        """
        Extract the first .txt file found in a supported archive and return its content as a string.

        Supported formats:
        - .zip
        - .tar.xz
        - .7z

        :param FilePath archive_path: Path to the archive file

        :return: Content of the extracted .txt file
        :rtype: str
        :raises ValueError: If no .txt file is found or format is unsupported
        """
        # Create a temporary directory for safe extraction
        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            if archive_path.suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zf:
                    txt_files = [f for f in zf.namelist() if f.endswith(".txt")]
                    if not txt_files:
                        raise ValueError("📄❌ No .txt file found in zip archive")
                    zf.extract(txt_files[0], path=tmpdir_path)
                    return (tmpdir_path / txt_files[0]).read_text()

            elif archive_path.suffixes[-2:] == [".tar", ".xz"]:
                with tarfile.open(archive_path, "r:xz") as tf:
                    txt_files = [m for m in tf.getmembers() if m.name.endswith(".txt")]
                    if not txt_files:
                        raise ValueError("📄❌ No .txt file found in tar.xz archive")
                    tf.extract(txt_files[0], path=tmpdir_path, filter="data")
                    return (tmpdir_path / txt_files[0].name).read_text()

            elif archive_path.suffix == ".7z":
                with py7zr.SevenZipFile(archive_path, mode="r") as archive:
                    txt_files = [f for f in archive.getnames() if f.endswith(".txt")]
                    if not txt_files:
                        raise ValueError("📄❌ No .txt file found in 7z archive")
                    archive.extract(targets=[txt_files[0]], path=tmpdir_path)
                    return (tmpdir_path / txt_files[0]).read_text()

            else:
                raise ValueError(f"📄❌ Unsupported archive format: {archive_path.suffix}")
