"""
课程查询解析服务

两阶段策略:
1. 精确阶段: 在范围内每个群组做大小写无关的精确匹配，结果汇总
2. 模糊阶段 (仅当精确阶段为 0 条): 每个群组子串匹配最多 fuzzy_limit 条，
   累计达到 pool_cap 条后不再查询剩余群组

每个阶段: 1 条 -> RESOLVED，多条 -> AMBIGUOUS，两阶段都为 0 -> NOT_FOUND。
只返回结果，不负责发送。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from core.helpers.title_utils import normalize_title, strip_quotes
from core.logging import get_logger
from repositories.media_repo import MediaRepository
from repositories.membership_repo import MembershipRepository
from schemas.media import MediaRecordDTO

logger = get_logger(__name__)

PHASE_EXACT = "exact"
PHASE_FUZZY = "fuzzy"


class DispositionKind(str, Enum):
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"
    USAGE = "usage"
    NO_SCOPE = "no_scope"


@dataclass
class Disposition:
    kind: DispositionKind
    query: str = ""
    phase: Optional[str] = None
    target: Optional[MediaRecordDTO] = None
    candidates: List[MediaRecordDTO] = field(default_factory=list)
    scope: List[str] = field(default_factory=list)


class QueryResolver:
    def __init__(
        self,
        media_repo: MediaRepository,
        membership_repo: MembershipRepository,
        fuzzy_limit: int = 5,
        pool_cap: int = 6,
        candidates_max: int = 10,
    ):
        self.media_repo = media_repo
        self.membership_repo = membership_repo
        self.fuzzy_limit = fuzzy_limit
        self.pool_cap = pool_cap
        self.candidates_max = candidates_max

    async def resolve(self, raw_query: Optional[str], requester_id, chat_id, is_group: bool) -> Disposition:
        """
        Args:
            raw_query: 命令后的原始文本，可带一对双引号
            requester_id: 发起人用户 ID (私聊范围依据)
            chat_id: 发起所在会话
            is_group: 发起会话是否为群组

        Raises:
            StorageError: 存储层故障直接向上抛出
        """
        query = normalize_title(strip_quotes(raw_query))
        if not query:
            return Disposition(DispositionKind.USAGE)

        scope = await self._scope(requester_id, chat_id, is_group)
        if not scope:
            return Disposition(DispositionKind.NO_SCOPE, query=query)

        exact: List[MediaRecordDTO] = []
        for cid in scope:
            hit = await self.media_repo.get_exact(cid, query)
            if hit:
                exact.append(hit)
        if exact:
            return self._decide(exact, PHASE_EXACT, query, scope)

        pool: List[MediaRecordDTO] = []
        for cid in scope:
            pool.extend(await self.media_repo.search_fuzzy(cid, query, self.fuzzy_limit))
            if len(pool) >= self.pool_cap:
                break
        if pool:
            return self._decide(pool, PHASE_FUZZY, query, scope)

        logger.log_operation("查询无结果", details=f"query='{query}' scope={len(scope)}", level="debug")
        return Disposition(DispositionKind.NOT_FOUND, query=query, scope=scope)

    async def _scope(self, requester_id, chat_id, is_group: bool) -> List[str]:
        if is_group:
            return [str(chat_id)]
        memberships = await self.membership_repo.list_chats_for_user(requester_id)
        return [m.chat_id for m in memberships]

    def _decide(self, hits: List[MediaRecordDTO], phase: str, query: str, scope: List[str]) -> Disposition:
        if len(hits) == 1:
            target = hits[0]
            logger.log_operation(
                "查询命中",
                entity_id=target.chat_id,
                details=f"phase={phase} query='{query}' msg={target.message_id}",
            )
            return Disposition(DispositionKind.RESOLVED, query=query, phase=phase, target=target, scope=scope)

        logger.log_operation("查询存在歧义", details=f"phase={phase} query='{query}' hits={len(hits)}")
        return Disposition(
            DispositionKind.AMBIGUOUS,
            query=query,
            phase=phase,
            candidates=hits[: self.candidates_max],
            scope=scope,
        )
