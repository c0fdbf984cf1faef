"""TCP server answering math requests in per-session worker processes."""
from multiprocessing import Pipe, Process
from multiprocessing.connection import Connection
from multiprocessing.synchronize import Event
from pathlib import Path
import socket
import time
from typing import List, Optional, TextIO, Tuple

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, PrivateAttr

from checked_math.common.logger import logger
from checked_math.common.protocol import Status, encode_response
from checked_math.server.admission import AdmissionControl
from checked_math.server.worker import SessionWorker

Session = Tuple[Process, Connection]


class MathServer(BaseModel):
    """
    TCP socket server handling math request frames from clients.

    Features:
        - Admits at most ``max_sessions`` concurrent client sessions.
        - Greets every connection with a READY or BUSY handshake frame.
        - Spawns one worker process per admitted session.
        - Reaps finished sessions before each admission decision.
        - Optionally journals session summaries to ``output_file``.
    """

    # Allow arbitrary types like multiprocessing.Connection
    model_config = ConfigDict(arbitrary_types_allowed=True)

    host: IPvAnyAddress = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=9000, ge=1, le=65535, description="Server TCP port")
    max_sessions: int = Field(default=6, ge=1, description="Maximum number of concurrent sessions")
    output_file: Optional[Path] = Field(default=None, description="Path to journal session summaries")

    _admission: AdmissionControl = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._admission = AdmissionControl(max_sessions=self.max_sessions)

    @property
    def admission(self) -> AdmissionControl:
        """Admission control shared by every accepted connection."""
        return self._admission

    def _spawn_session(self, conn: socket.socket, session_id: int) -> Session:
        """
        Spawn a SessionWorker for the given connection and return process and pipe.

        :param socket.socket conn: Admitted client connection
        :param int session_id: Sequence number of the session

        :return: Tuple of (Process, parent_pipe)
        :rtype: Tuple[Process, Connection]
        """
        parent_conn, child_conn = Pipe()
        worker = SessionWorker(conn=conn, pipe=child_conn, session_id=session_id)
        process = Process(target=worker.run, name=f"session-{session_id}")
        process.start()
        # The child owns its end of the pipe from now on
        child_conn.close()
        return process, parent_conn

    def _collect_finished_sessions(
        self, active_sessions: List[Session], f_out: Optional[TextIO] = None
    ) -> None:
        """
        Reap finished sessions, release their slots and journal their summaries.

        Finished sessions are removed from the active_sessions list.

        :param list active_sessions: List of tuples (Process, Pipe)
        :param file f_out: Open journal file handle, if any
        """
        # Iterate in reverse to safely remove finished sessions while iterating
        for i in reversed(range(len(active_sessions))):
            proc, pipe_conn = active_sessions[i]
            if proc.is_alive():
                continue

            try:
                payload = pipe_conn.recv()
            except EOFError:
                payload = {"session": proc.name, "error": f"worker exited with code {proc.exitcode}"}
            pipe_conn.close()
            proc.join()
            active_sessions.pop(i)
            self._admission.release()

            logger.info(
                f"🔌 Session {payload['session']} closed, "
                f"{self._admission.active} session(s) total"
            )
            if f_out is not None:
                f_out.write(self._journal_line(payload))
                f_out.flush()

    @staticmethod
    def _journal_line(payload: dict) -> str:
        if "error" in payload:
            return f"session {payload['session']} -> ERROR: {payload['error']}\n"
        return (
            f"session {payload['session']}: {payload['requests']} request(s), "
            f"{payload['failures']} failure(s)\n"
        )

    def _accept_session(
        self,
        conn: socket.socket,
        session_id: int,
        active_sessions: List[Session],
        f_out: Optional[TextIO] = None,
    ) -> bool:
        """
        Admit or deny a freshly accepted connection.

        Admitted connections are handed to a new worker process and the
        parent's copy of the socket is closed; denied ones receive a BUSY
        handshake and are closed immediately.

        :param socket.socket conn: Accepted client connection
        :param int session_id: Sequence number for the session if admitted
        :param list active_sessions: List of tuples (Process, Pipe)
        :param file f_out: Open journal file handle, if any

        :return: True if the session was admitted
        :rtype: bool
        """
        self._collect_finished_sessions(active_sessions, f_out)

        with conn:
            if not self._admission.try_acquire():
                logger.error(
                    f"🚫 Session open denied, limit of {self.max_sessions} session(s) reached"
                )
                try:
                    conn.sendall(encode_response(Status.BUSY))
                except OSError as exc:
                    logger.error(f"🔌❌ Client disconnected before receiving BUSY: {exc}")
                return False

            try:
                conn.sendall(encode_response(Status.READY))
            except OSError as exc:
                self._admission.release()
                logger.error(f"🔌❌ Client disconnected before handshake: {exc}")
                return False

            active_sessions.append(self._spawn_session(conn, session_id))
            logger.info(
                f"🔌 Session {session_id} opened, {self._admission.active} session(s) total"
            )
            return True

    def start(self, max_connections: Optional[int] = None, ready: Optional[Event] = None) -> None:
        """
        Start the TCP server and serve client sessions.

        Steps:
            1. Bind and listen on the specified host and port.
            2. Accept client connections one at a time.
            3. Reap finished sessions, then admit or deny the new one.
            4. Serve each admitted session in its own worker process.
            5. After ``max_connections`` connections (if given), wait for
               the remaining sessions and return.

        :param int max_connections: Number of connections to accept before stopping,
            None to serve forever
        :param Event ready: Set once the server is listening
        :return: None
        """
        logger.info(f"🖥️ Starting server on {self.host}:{self.port}")

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((str(self.host), self.port))
            s.listen()
            logger.info(f"🖥️ Server listening, at most {self.max_sessions} session(s)")
            if ready is not None:
                ready.set()

            f_out = self.output_file.open("w", encoding="utf-8") if self.output_file else None
            active_sessions: List[Session] = []
            accepted = 0
            try:
                while max_connections is None or accepted < max_connections:
                    conn, _ = s.accept()
                    accepted += 1
                    self._accept_session(conn, accepted, active_sessions, f_out)

                # Collect remaining active sessions
                while active_sessions:
                    self._collect_finished_sessions(active_sessions, f_out)
                    time.sleep(0.01)
            finally:
                if f_out is not None:
                    f_out.close()
