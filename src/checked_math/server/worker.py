"""Worker process serving one client session."""
from multiprocessing.connection import Connection
import socket

from pydantic import BaseModel, ConfigDict, Field

from checked_math.common.logger import logger
from checked_math.common.protocol import (
    ProtocolError,
    decode_request,
    operation_name,
    recv_frame,
)
from checked_math.server.adapter import handle_frame


class SessionWorker(BaseModel):
    """
    Worker process responsible for one admitted client session.

    Lifecycle:
        - Spawned by the parent server process after admission
        - Answers request frames until the client closes the connection
        - Sends a session summary through a Pipe
        - Terminates, which frees the session slot in the parent
    """

    # Make the Pydantic instance immutable (read-only) for safety
    # Allow arbitrary types like socket.socket and multiprocessing.Connection
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conn: socket.socket = Field(..., description="Client connection owned by this session")
    pipe: Connection = Field(..., description="Connection object for sending the summary back to server")
    session_id: int = Field(..., ge=1, description="Sequence number of the session")

    def run(self) -> None:
        """
        Serve request frames until EOF and report the session summary.

        :return: None
        """
        logger.info(f"👷🏁 Session {self.session_id} started")

        requests = 0
        failures = 0
        error = None

        try:
            while True:
                frame: bytes = recv_frame(self.conn)
                if not frame:
                    break

                response, status = handle_frame(frame)
                requests += 1
                if status.is_error:
                    failures += 1
                    op_id, operands = decode_request(frame)
                    logger.warning(
                        f"👷⚠️ Session {self.session_id}: {operation_name(op_id)}{tuple(operands)} "
                        f"failed with {status.name}"
                    )
                self.conn.sendall(response)

        except (ProtocolError, OSError) as exc:
            error = str(exc)
            logger.error(f"👷❌ Session {self.session_id} aborted: {exc}")

        finally:
            payload = {"session": self.session_id, "requests": requests, "failures": failures}
            if error is not None:
                payload["error"] = error
            self.pipe.send(payload)

            # Always close the connections
            self.pipe.close()
            self.conn.close()

            logger.info(
                f"👷✅ Session {self.session_id} finished: {requests} request(s), {failures} failure(s)"
            )
