"""Bundled Marmaray schedule tables (Halkalı - Gebze)."""

from datetime import time

from .models import InterStationTime, Route, Station

# (id, name, (lon, lat), km from Halkalı)
STATION_ROWS = [
    ("65", "Sirkeci", (28.9770540249921, 41.013545950893), 23.38),
    ("67", "Ayrılıkçeşme", (29.0301410162619, 41.000142555216), 29.34),
    ("68", "Üsküdar", (29.0137932912137, 41.025756685677), 27.47),
    ("234", "Yenikapı", (28.9495799493274, 41.004779309437), 20.38),
    ("237", "Kazlıçeşme", (28.9168834698481, 40.992686765903), 16.93),
    ("265", "Zeytinburnu", (28.9054462645074, 40.9858745807536), 15.83),
    ("266", "Yenimahalle", (28.8810507091285, 40.9817390460176), 13.34),
    ("267", "Bakırköy", (28.8723187722271, 40.9802655959296), 12.48),
    ("268", "Ataköy", (28.8562250170243, 40.9802168588159), 10.96),
    ("269", "Yeşilyurt", (28.8372823708532, 40.9654758614525), 8.64),
    ("270", "Yeşilköy", (28.8248828840576, 40.9626579916415), 7.36),
    ("271", "Florya Akvaryum", (28.7970462624679, 40.9677718222994), 4.77),
    ("272", "Florya", (28.7874770796778, 40.9729629167419), 3.79),
    ("273", "Küçükçekmece", (28.7729538518441, 40.9885301752163), 2.88),
    ("274", "Mustafa Kemal", (28.7739502215087, 41.0062789769983), 1.19),
    ("275", "Halkalı", (28.7664382511562, 41.0178427940864), 0.00),
    ("276", "Tuzla", (29.3223601331439, 40.8299524360082), 62.99),
    ("277", "İçmeler", (29.3000611746553, 40.8456508904887), 60.31),
    ("278", "Aydıntepe", (29.2931664014893, 40.8522885876792), 59.56),
    ("279", "Güzelyalı", (29.2834955974544, 40.8568547122426), 58.50),
    ("280", "Tersane", (29.2733636213888, 40.8609774863764), 57.40),
    ("281", "Kaynarca", (29.2560336339024, 40.8713029434192), 55.59),
    ("282", "Pendik", (29.2316720558041, 40.8802067715332), 52.96),
    ("283", "Yunus", (29.2105353314047, 40.8845046267267), 50.67),
    ("284", "Kartal", (29.1911901410005, 40.8886128831676), 48.57),
    ("285", "Başak", (29.1773527136764, 40.8905590782827), 47.08),
    ("286", "Atalar", (29.1694542074836, 40.8985880196095), 46.27),
    ("287", "Cevizli", (29.1560454699434, 40.9100151224824), 44.94),
    ("288", "Maltepe", (29.1335259970986, 40.9206463835831), 42.53),
    ("289", "Süreyya Plajı", (29.1242047148349, 40.9268299858791), 41.53),
    ("290", "İdealtepe", (29.1142558579521, 40.9378068714961), 40.46),
    ("291", "Küçükyalı", (29.1068216034401, 40.9462573975736), 39.71),
    ("292", "Bostancı", (29.0950591485625, 40.9538001484529), 38.46),
    ("293", "Suadiye", (29.0844186912134, 40.9604752408322), 37.33),
    ("294", "Erenköy", (29.0764726675955, 40.9714092751695), 36.49),
    ("295", "Göztepe", (29.0625591735035, 40.9791648388466), 34.93),
    ("296", "Feneryolu", (29.0490084626684, 40.9786961509793), 33.45),
    ("297", "Söğütlüçeşme", (29.0376279458605, 40.990902337839), 32.25),
    ("298", "Çayırova", (29.3475125745724, 40.8104982886506), 65.81),
    ("299", "Fatih", (29.3639258834218, 40.8076260643992), 67.64),
    ("300", "Osmangazi", (29.3800141019468, 40.7992722879167), 69.42),
    ("301", "Darıca", (29.3918381727911, 40.7914192062897), 70.72),
    ("302", "Gebze", (29.4095634828195, 40.7842492519915), 72.70),
]

# Halkalı -> Gebze running times in seconds
FORWARD_TIMES = [
    ("275", "274", 180),
    ("274", "273", 120),
    ("273", "272", 180),
    ("272", "271", 120),
    ("271", "270", 180),
    ("270", "269", 120),
    ("269", "268", 120),
    ("268", "267", 180),
    ("267", "266", 120),
    ("266", "265", 180),
    ("265", "237", 120),
    # Tunnel section
    ("237", "234", 240),
    ("234", "65", 180),
    ("65", "68", 240),
    ("68", "67", 240),
    ("67", "297", 180),
    # Asian side
    ("297", "296", 120),
    ("296", "295", 120),
    ("295", "294", 120),
    ("294", "293", 180),
    ("293", "292", 120),
    ("292", "291", 180),
    ("291", "290", 120),
    ("290", "289", 120),
    ("289", "288", 120),
    ("288", "287", 180),
    ("287", "286", 120),
    ("286", "285", 120),
    ("285", "284", 120),
    ("284", "283", 180),
    ("283", "282", 180),
    ("282", "281", 180),
    ("281", "280", 120),
    ("280", "279", 120),
    ("279", "278", 120),
    ("278", "277", 120),
    ("277", "276", 180),
    ("276", "298", 180),
    ("298", "299", 180),
    ("299", "300", 120),
    ("300", "301", 120),
    ("301", "302", 120),
]

FULL_LINE = (
    "275", "274", "273", "272", "271", "270", "269", "268", "267", "266", "265",
    "237", "234", "65", "68", "67",
    "297", "296", "295", "294", "293", "292", "291", "290", "289", "288", "287",
    "286", "285", "284", "283", "282", "281", "280", "279", "278", "277", "276",
    "298", "299", "300", "301", "302",
)

# (section name, last station of the section) in line order
SECTIONS = [
    ("European Side", "234"),
    ("Tunnel Section", "67"),
    ("Asian Side", "302"),
]


def _slice(start_id: str, end_id: str):
    start = FULL_LINE.index(start_id)
    end = FULL_LINE.index(end_id)
    if start <= end:
        return FULL_LINE[start:end + 1]
    return tuple(reversed(FULL_LINE[end:start + 1]))


ROUTES = [
    Route(
        id="marmaray-full",
        name="Marmaray Full Line",
        termini=("275", "302"),
        frequency_minutes=15,
        station_ids=FULL_LINE,
        service_start=time(6, 0),
        service_end=time(22, 30),
        color="#0066CC",
        train_prefix="M",
        display_name="Full Line",
    ),
    Route(
        id="marmaray-short",
        name="Marmaray Ataköy-Pendik",
        termini=("268", "282"),
        frequency_minutes=8,
        station_ids=_slice("268", "282"),
        service_start=time(6, 0),
        service_end=time(22, 30),
        color="#0099FF",
        train_prefix="S",
        display_name="Short Service",
    ),
    Route(
        id="marmaray-evening",
        name="Marmaray Evening Pendik-Zeytinburnu",
        termini=("282", "265"),
        frequency_minutes=8,
        station_ids=_slice("282", "265"),
        service_start=time(20, 50),
        service_end=time(23, 30),
        color="#FF6600",
        train_prefix="E",
        display_name="Evening Service",
    ),
]


def default_stations():
    return [Station(id=i, name=n, coordinate=c, distance_from_origin=d) for i, n, c, d in STATION_ROWS]


def default_routes():
    return list(ROUTES)


def default_sections():
    return list(SECTIONS)


def default_inter_station_times():
    """Forward times plus their reverse; the published timetable is symmetric."""
    times = [InterStationTime(a, b, s) for a, b, s in FORWARD_TIMES]
    times.extend(InterStationTime(b, a, s) for a, b, s in FORWARD_TIMES)
    return times
