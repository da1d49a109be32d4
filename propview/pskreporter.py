"""PSKReporter reception-report parsing into propagation spots."""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

from .band_utils import freq_to_band
from .locator import InvalidLocator, decode
from .logging_utils import log_info, log_warning
from .models import PropagationSpot, Station


def _station(callsign: str, locator: str | None) -> Station:
    locator = (locator or "").strip()
    location = None
    if locator:
        try:
            location = decode(locator[:6])
        except InvalidLocator:
            location = None
    return Station(callsign=callsign.strip().upper(), location=location, locator=locator or None)


def parse_reception_reports(xml_data: str) -> list[PropagationSpot]:
    """Convert a PSKReporter query response into spots.

    Args:
        xml_data: XML text of a retrieve.pskreporter.info query response

    Returns:
        One PropagationSpot per usable receptionReport, in document order.
        Reports without both callsigns or with a frequency outside the
        amateur bands are skipped with a warning.

    Raises:
        xml.etree.ElementTree.ParseError: if xml_data is not well-formed
    """
    root = ET.fromstring(xml_data)
    spots = []

    for index, report in enumerate(root.iter("receptionReport")):
        sender = report.get("senderCallsign", "")
        receiver = report.get("receiverCallsign", "")
        if not sender.strip() or not receiver.strip():
            log_warning("report_skipped", index=index, reason="missing callsign")
            continue

        try:
            freq_hz = float(report.get("frequency", 0))
        except ValueError:
            freq_hz = 0.0
        band = freq_to_band(freq_hz)
        if band is None:
            log_warning("report_skipped", index=index, reason="frequency outside amateur bands",
                        frequency=report.get("frequency"))
            continue

        snr_str = report.get("sNR")
        try:
            snr = float(snr_str) if snr_str not in (None, "") else None
        except ValueError:
            snr = None

        try:
            ts_unix = int(report.get("flowStartSeconds", 0))
        except ValueError:
            log_warning("report_skipped", index=index, reason="bad flowStartSeconds")
            continue
        timestamp = datetime.fromtimestamp(ts_unix, tz=timezone.utc)

        tx = _station(sender, report.get("senderLocator"))
        rx = _station(receiver, report.get("receiverLocator"))

        spots.append(PropagationSpot(
            id=f"{tx.callsign}-{rx.callsign}-{ts_unix}",
            timestamp=timestamp,
            frequency_hz=freq_hz,
            band=band,
            mode=report.get("mode", "") or "",
            transmitter=tx,
            receiver=rx,
            snr_db=snr,
            source="PSK_REPORTER",
        ))

    log_info("reception_reports_parsed", spots=len(spots))
    return spots
