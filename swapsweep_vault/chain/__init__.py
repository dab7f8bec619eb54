"""
인프로세스 체인 참조 구현

볼트가 소비하는 외부 협력자(토큰, 풀, 오라클)의 실행 가능한 구현.
테스트와 시뮬레이션용이며 볼트 코어는 interfaces의 프로토콜에만 의존한다.
"""

from .token import ERC20Token, TokenError
from .pool import SimulatedPool, PoolError, TickInfo, PositionInfo
from .oracle import VolatilityOracle
from .trader import WashTrader
from .chain import Chain
