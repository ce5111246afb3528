
import logging
def get_logger(name:str="pyv-cachesim"):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    return logging.getLogger(name)

def set_debug(enabled: bool):
    """Switches the package loggers between INFO and DEBUG."""
    logging.getLogger("pyv_cachesim").setLevel(logging.DEBUG if enabled else logging.INFO)
