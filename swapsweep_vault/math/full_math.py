"""
Full Math - 정밀 곱셈/나눗셈

Solidity FullMath / UnsafeMath와 같은 반올림 규칙.
Python 정수는 오버플로우가 없으므로 반올림 방향만 맞추면 된다.
"""


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)"""
    if denominator == 0:
        raise ZeroDivisionError("mul_div: denominator가 0입니다")
    return (a * b) // denominator


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)"""
    result = mul_div(a, b, denominator)
    if (a * b) % denominator > 0:
        result += 1
    return result


def div_rounding_up(numerator: int, denominator: int) -> int:
    """ceil(numerator / denominator)"""
    result = numerator // denominator
    if numerator % denominator > 0:
        result += 1
    return result
