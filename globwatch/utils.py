"""
This module provides the worker threads used to forward the output of a
running command while the dispatcher waits for it to exit.

StreamPump reads a text stream line by line and hands every line to a sink
function as soon as it arrives. It stops on its own when the stream reaches
end of file, which happens when the process exits and closes its end of the
pipe.
"""

import logging
import threading

logger = logging.getLogger("globwatch.utils")


class StreamPump(threading.Thread):
    """
    A thread that forwards each line of a stream to a sink function.
    """

    def __init__(self, stream, sink, name=None):
        """
        Initialize the pump thread.

        Args:
            stream: A text stream opened for reading (e.g. Popen.stdout).
            sink (callable): Called with every line, without the line ending.
            name (str, optional): Thread name.
        """
        super(StreamPump, self).__init__(name=name)
        self.stream = stream
        self.sink = sink
        self.lines = 0
        self.daemon = True

    def run(self):
        """
        Read lines until end of file.
        """
        try:
            for line in iter(self.stream.readline, ""):
                self.lines += 1
                try:
                    self.sink(line.rstrip("\r\n"))
                except Exception as e:
                    logger.exception("Exception in output sink for %s: %s", self.name, e)
        except ValueError:
            # The stream was closed under us.
            pass
        finally:
            self.stream.close()


def spawn_stream_pump(stream, sink, name=None):
    """
    Factory function to spawn a stream pump thread.

    Args:
        stream: Text stream to read.
        sink (callable): Function receiving each line.
        name (str, optional): Thread name.

    Returns:
        StreamPump: The running pump thread instance.
    """
    pump = StreamPump(stream, sink, name=name)
    pump.start()
    logger.debug("spawn_stream_pump: Started %s.", pump.name)
    return pump
