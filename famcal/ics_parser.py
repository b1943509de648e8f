from loguru import logger

from famcal.models import RawEvent, RawProperty


def unfold(raw: str | bytes) -> str:
    """
    Reverse RFC 5545 line folding.

    Continuation lines start with a single space or tab; that one character
    is dropped and the rest is glued onto the previous logical line.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    raw = raw.replace("\r\n", "\n").replace("\r", "\n")
    out: list[str] = []
    for line in raw.split("\n"):
        if line and line[0] in (" ", "\t") and out:
            out[-1] += line[1:]
        else:
            out.append(line)
    return "\n".join(out)


def parse_property(line: str) -> RawProperty | None:
    """Split `NAME;KEY=VAL;...:VALUE`; None when the line has no colon."""
    left, sep, value = line.partition(":")
    if not sep:
        return None
    name, *param_parts = left.split(";")
    params: dict[str, str] = {}
    for part in param_parts:
        key, _, pvalue = part.partition("=")
        params[key.upper()] = pvalue
    return RawProperty(name=name.upper(), params=params, value=value)


def extract_events(text: str) -> list[RawEvent]:
    """
    Group the content lines of each BEGIN:VEVENT/END:VEVENT block.

    Lines outside a VEVENT are ignored and a block still open at the end
    of the text is dropped.
    """
    events: list[RawEvent] = []
    current: RawEvent | None = None
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        upper = line.upper()
        if upper == "BEGIN:VEVENT":
            current = RawEvent()
            continue
        if upper == "END:VEVENT":
            if current is not None:
                events.append(current)
            current = None
            continue
        if current is None:
            continue
        prop = parse_property(line)
        if prop is None:
            continue
        current.properties[prop.name] = prop
        if prop.name == "EXDATE":
            current.exdate_lines.append(prop)

    if current is not None:
        logger.debug("Dropping unterminated VEVENT ({} properties)", len(current.properties))
    return events
