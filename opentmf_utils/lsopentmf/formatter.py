"""
Listing formatter

Renders driver and device metadata at verbosity 0 (names only), 1 (one
tab separated line) or 2 (labelled block). Device output is nested under its
driver with a two space indent.
"""

from opentmf_utils.opentmf.base import DeviceInfo, DriverInfo, DriverVersion

VERBOSE_MAX = 2
DEVICE_INDENT = "  "


def clamp_verbosity(level: int) -> int:
    """Limit a -v count to the supported range"""
    return max(0, min(level, VERBOSE_MAX))


def format_version(version: DriverVersion) -> str:
    """
    major.minor, plus .patch when patch is non-zero, plus the extra label

    Example:
        >>> format_version(DriverVersion(major=1, minor=2, extra="-rc1"))
        '1.2-rc1'
    """
    text = f"{version.major}.{version.minor}"
    if version.patch > 0:
        text += f".{version.patch}"
    return text + version.extra


def format_multi_line(label: str, text: str) -> str:
    """
    Render a labelled value that may span several lines

    Single line text is rendered as "Label: text". Otherwise the label gets a
    line of its own and every line of text follows, indented by two spaces.

    Example:
        >>> format_multi_line("Authors", "Alice\\nBob")
        'Authors:\\n  Alice\\n  Bob\\n'
    """
    if "\n" not in text:
        return f"{label}: {text}\n"

    *lines, rest = text.split("\n")
    out = [f"{label}:\n"]
    out.extend(f"  {line}\n" for line in lines)
    if rest:
        out.append(f"  {rest}\n")
    return "".join(out)


def format_driver(info: DriverInfo, verbose: int = 0) -> str:
    """Render driver metadata at the given verbosity"""
    verbose = clamp_verbosity(verbose)

    if verbose == 0:
        return f"{info.name}\n"

    if verbose == 1:
        return "\t".join([
            info.name,
            format_version(info.version),
            info.license,
            "non-free" if info.non_free else "free",
        ]) + "\n"

    return "".join([
        f"Driver: {info.name}\n",
        f"Version: {format_version(info.version)}\n",
        format_multi_line("Description", info.description),
        format_multi_line("Authors", info.authors),
        f"License: {info.license}\n",
        f"Free: {'no' if info.non_free else 'yes'}\n",
        "\n",
    ])


def format_device(path: str, info: DeviceInfo, verbose: int = 0) -> str:
    """Render device metadata at the given verbosity, indented under its driver"""
    verbose = clamp_verbosity(verbose)

    if verbose == 0:
        return f"{DEVICE_INDENT}{path}\n"

    if verbose == 1:
        return f"{DEVICE_INDENT}{path}\t{info.name}\t{info.serial}\n"

    return "".join([
        f"{DEVICE_INDENT}Path: {path}\n",
        f"{DEVICE_INDENT}Name: {info.name}\n",
        f"{DEVICE_INDENT}Serial: {info.serial}\n",
        "\n",
    ])
