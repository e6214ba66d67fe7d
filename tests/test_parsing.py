import pytest

from backend.naverland.parsing import (
    extract_floor,
    floor_label,
    extract_numeric_token,
    extract_size,
    parse_floor_number,
    parse_listing_html,
    parse_price_manwon,
)


@pytest.mark.parametrize(
    "text,units,expected",
    [
        ("원룸 33.5㎡ 3층", ["㎡"], 33.5),
        ("전용 26 ㎡", ["㎡", "m²"], 26.0),
        ("공급 1,200m² 대형", ["㎡", "m²"], 1200.0),
        ("3층/5층", ["층"], 3.0),
        ("면적 정보 없음", ["㎡"], None),
        ("", ["㎡"], None),
        (None, ["㎡"], None),
        ("33㎡", [], None),
    ],
)
def test_extract_numeric_token(text, units, expected):
    assert extract_numeric_token(text, units) == expected


def test_extract_size_prefers_square_metres_and_converts_pyeong():
    assert extract_size("투룸 41.3㎡ 10평") == "41.3"
    assert extract_size("약 10평") == "33.06"
    assert extract_size("남향, 풀옵션") == ""


@pytest.mark.parametrize(
    "text,expected",
    [
        ("원룸 26㎡ 3층 남향", "3층"),
        ("빌라 반지하 20㎡", "반지하"),
        ("지하1층 근린", "지하"),
        ("옥탑 원룸", "옥탑"),
        ("층수 미상", ""),
        ("원룸 30㎡ 1/5층", "1층"),
        ("투룸 B1/5층", "지하1층"),
        ("오피스텔 12 / 15층 남향", "12층"),
        ("고/20층", "고층"),
    ],
)
def test_extract_floor(text, expected):
    assert extract_floor(text) == expected


def test_floor_label():
    assert floor_label("3") == "3층"
    assert floor_label("b2") == "지하2층"
    assert floor_label("중") == "중층"
    assert floor_label("옥탑") == ""


def test_parse_floor_number():
    assert parse_floor_number("12층") == 12
    assert parse_floor_number("옥탑") is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1억", 10000.0),
        ("1억 5,000", 15000.0),
        ("2억5000", 25000.0),
        ("5,000", 5000.0),
        ("50", 50.0),
        ("협의", None),
        ("", None),
    ],
)
def test_parse_price_manwon(text, expected):
    assert parse_price_manwon(text) == expected


LISTING_HTML = """
<html><body>
<div class="item_list">
  <div class="item">
    <a href="/rooms?articleNo=2412345678"><span class="item_title">신축 원룸</span></a>
    <div class="price_line">월세 1,000/50</div>
    <div class="info_area">원룸 | 26.4㎡ | 3층 | 남향</div>
    <img src="https://img.example/1.jpg">
  </div>
  <div class="item">
    <span class="text_item">반지하 투룸</span>
    <div class="item_price">전세 1억</div>
    <div class="item_info">투룸 40㎡ 반지하</div>
  </div>
  <div class="item"></div>
</div>
</body></html>
"""


def test_parse_listing_html_extracts_text_fields():
    parsed = parse_listing_html(LISTING_HTML)
    assert len(parsed) == 3
    first, second, empty = parsed
    assert first.succeeded
    assert first.value.title == "신축 원룸"
    assert first.value.price_text == "월세 1,000/50"
    assert "26.4㎡" in first.value.info_text
    assert first.value.href == "https://new.land.naver.com/rooms?articleNo=2412345678"
    assert first.value.image_url == "https://img.example/1.jpg"
    assert second.succeeded and second.value.href == ""
    assert not empty.succeeded


def test_parse_listing_html_caps_items():
    items = "".join(f'<div class="item"><span class="item_title">t{i}</span></div>' for i in range(45))
    html = f'<div class="item_list">{items}</div>'
    assert len(parse_listing_html(html)) == 30
    assert len(parse_listing_html(html, limit=5)) == 5


def test_parse_listing_html_without_listing_nodes():
    assert parse_listing_html("<html><body><p>점검 중</p></body></html>") == []
