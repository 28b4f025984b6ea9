from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from web3 import Web3

from leaderboard_streaming.config.settings import Settings
from leaderboard_streaming.providers.chain.infra.repo.projection_store import ProjectionStore

router = APIRouter()


class PlayerOut(BaseModel):
    address: str
    wins: int
    totalGtWon: str
    matchesPlayed: int


class MatchOut(BaseModel):
    match_id: str
    player1: str
    player2: str
    stake: str
    status: int
    timestamp: str
    startTime: Optional[str] = None
    player1Staked: bool
    player2Staked: bool
    winner: Optional[str] = None


class LeaderboardResponse(BaseModel):
    success: bool = True
    leaderboard: List[PlayerOut]


class PlayerResponse(BaseModel):
    success: bool = True
    player: PlayerOut


class MatchesResponse(BaseModel):
    success: bool = True
    matches: List[MatchOut]


def get_store(request: Request) -> ProjectionStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    store: ProjectionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> LeaderboardResponse:
    """
    Top players by total GT won.
    """
    players = store.top_players(limit or settings.leaderboard_limit)
    return LeaderboardResponse(leaderboard=[PlayerOut(**p.to_dict()) for p in players])


@router.get("/player/{address}", response_model=PlayerResponse)
async def get_player(address: str, store: ProjectionStore = Depends(get_store)) -> PlayerResponse:
    """
    Stats for a single address. Lookups are checksum-insensitive.
    """
    player = None
    if Web3.is_address(address):
        player = store.get_player(Web3.to_checksum_address(address))

    if player is None:
        raise HTTPException(
            status_code=404,
            detail={
                "message": f"Player not found: {address}",
                "error_code": "PLAYER_NOT_FOUND",
            }
        )
    return PlayerResponse(player=PlayerOut(**player.to_dict()))


@router.get("/matches", response_model=MatchesResponse)
async def get_matches(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    store: ProjectionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> MatchesResponse:
    """
    Most recently observed matches first.
    """
    matches = store.recent_matches(limit or settings.matches_limit)
    return MatchesResponse(matches=[MatchOut(**m.to_dict()) for m in matches])
