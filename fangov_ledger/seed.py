"""Demo ledger: two artists, one fan, open proposals and unpaid revenue"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List

from fangov_ledger.engine import GovernanceEngine

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"


@dataclass
class DemoLedger:
    """Ids of everything the seed created"""
    user_ids: Dict[str, int] = field(default_factory=dict)
    artist_ids: Dict[str, int] = field(default_factory=dict)
    proposal_ids: Dict[str, int] = field(default_factory=dict)
    revenue_ids: List[int] = field(default_factory=list)


def seed_demo_data(engine: GovernanceEngine) -> DemoLedger:
    demo = DemoLedger()
    now = engine.clock()

    aurora_user = engine.register_user(
        "aurora_artist", DEMO_PASSWORD,
        wallet_address="0x742d35Cc6634C0532925a3b844Bc454e4438f44e",
        bio="Indie Electronic Artist from Stockholm, Sweden"
    )
    nebula_user = engine.register_user(
        "nebula_artist", DEMO_PASSWORD,
        wallet_address="0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
        bio="Electronic Music Producer and Visual Artist"
    )
    fan = engine.register_user(
        "fan_user", DEMO_PASSWORD,
        wallet_address="0x90F79bf6EB2c4f870365E785982E1f101E93b906"
    )
    demo.user_ids.update(aurora=aurora_user.id, nebula=nebula_user.id, fan=fan.id)

    aurora = engine.onboard_artist(
        aurora_user.id,
        name="Aurora",
        genres=["Electronic", "Indie Pop", "Vocalist", "Producer"],
        location="Stockholm, Sweden",
        token_name="AuroraShares",
        token_symbol="AURORA",
        token_supply=1_000_000,
        artist_share_pct=60,
        token_holder_share_pct=30,
        treasury_share_pct=10,
        contract_address="0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
    )
    nebula = engine.onboard_artist(
        nebula_user.id,
        name="Nebula",
        genres=["Electronic", "Ambient", "Downtempo", "Visual"],
        location="Berlin, Germany",
        token_name="NebulaDAO",
        token_symbol="NEBULA",
        token_supply=2_000_000,
        artist_share_pct=55,
        token_holder_share_pct=35,
        treasury_share_pct=10,
        contract_address="0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
    )
    demo.artist_ids.update(aurora=aurora.id, nebula=nebula.id)

    album = engine.create_proposal(
        aurora.id, aurora_user.id,
        title="Album Concept Direction",
        description="Vote on the creative direction for Aurora's upcoming album",
        type="creative",
        options=["Ethereal Electronic", "Acoustic Reimagining"],
        end_date=now + timedelta(days=2)
    )
    tour = engine.create_proposal(
        nebula.id, nebula_user.id,
        title="Tour Location Selection",
        description="Help decide where Nebula should tour next",
        type="business",
        options=["North America Tour", "European Tour"],
        end_date=now + timedelta(days=5)
    )
    demo.proposal_ids.update(album=album.id, tour=tour.id)

    for amount, source in ((10.2, "streaming"), (16.8, "merchandise"), (22.1, "licensing"), (12.8, "streaming")):
        demo.revenue_ids.append(engine.record_revenue(aurora.id, str(amount), source).id)

    engine.confirm_token_purchase(aurora.id, fan.id, 250, acquisition_ref="seed-aurora", method="usd")
    engine.confirm_token_purchase(nebula.id, fan.id, 750, acquisition_ref="seed-nebula", method="usd")
    engine.cast_vote(album.id, fan.id, 0)
    engine.cast_vote(tour.id, fan.id, 1)

    logger.info(f"Seeded demo ledger: {len(demo.user_ids)} users, {len(demo.artist_ids)} artists")
    return demo
