import csv
import io

CSV_HEADER = ['Date', 'Bristol Type', 'Pre-Weight', 'Post-Weight', 'Weight Unit', 'XP Earned']
CSV_FILENAME = 'movement-logs.csv'


def format_logged_at(when):
    """Render a timestamp like ``Jan 5, 2025, 3:04 PM``."""
    hour = when.hour % 12 or 12
    return f"{when:%b} {when.day}, {when.year}, {hour}:{when:%M} {when:%p}"


def format_weight(weight):
    if weight is None:
        return ''
    return int(weight) if float(weight).is_integer() else weight


def movements_to_csv(logs):
    out = io.StringIO()
    writer = csv.writer(out, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    for log in logs:
        writer.writerow([
            format_logged_at(log.logged_at),
            log.bristol_type,
            format_weight(log.pre_weight),
            format_weight(log.post_weight),
            log.weight_unit,
            log.xp_earned,
        ])
    return out.getvalue()
