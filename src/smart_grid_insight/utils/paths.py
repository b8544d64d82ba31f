# stdlib
from pathlib import Path
from datetime import datetime
# projectlib
from smart_grid_insight.utils.typing import Address, OpenMode

def validate_address(
    address: Address,
    *,
    extension: str = ".csv",
    mode: OpenMode = 'r',
    mkdir: bool = False,
) -> Path:
    """
    Validate and normalize a file or directory path.

    The input is converted to a ``pathlib.Path``. Directories are
    optionally created and returned as-is; file paths have their
    extension enforced and their existence checked against the intended
    I/O mode.

    Parameters
    ----------
    address : Address
        File or directory path as a string or ``Path``.
    extension : str, default ".csv"
        Expected file extension. If the path refers to a file and the
        extension does not match, it will be replaced.
    mode : OpenMode, default "r"
        Intended file access mode:
        - ``"r"``: path must exist if it refers to a file
        - ``"w"``: existing files will be renamed to avoid overwrite
    mkdir : bool, default False
        If True, treat ``address`` as a directory and create it
        (including parents) when missing.

    Returns
    -------
    pathlib.Path
        Validated and normalized path.

    Raises
    ------
    NotADirectoryError
        If the parent directory does not exist.
    FileNotFoundError
        If ``mode="r"`` and the file does not exist.
    """
    address = Path(address)
    if mkdir:
        address.mkdir(parents=True, exist_ok=True)
    if address.is_dir():
        return address
    if not address.parent.is_dir():
        msg = (
            f"Address path {address.parent}"
            " does not exist or is not a directory."
        )
        raise NotADirectoryError(msg)
    if address.suffix != extension:
        address = address.with_suffix(extension)
    if mode == "r" and not address.is_file():
        msg = f"{address} is not a file or does not exist."
        raise FileNotFoundError(msg)
    # Never overwrite an existing export
    if mode in ("w", "x") and address.exists():
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        address = address.with_name(
            f"{address.stem}_{timestamp}{address.suffix}"
        )

    return address
