"""User registration and artist onboarding"""
import logging
from typing import List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from fangov_ledger.config import SHARE_TOTAL, Settings
from fangov_ledger.errors import NotFoundError, ValidationError, parse_input
from fangov_ledger.models.db import Artist, User
from fangov_ledger.models.ledger import ArtistView
from fangov_ledger.models.requests import ArtistOnboarding, UserRegistration
from fangov_ledger.services.guard import ReferentialGuard
from fangov_ledger.services.storage import LedgerStore

logger = logging.getLogger(__name__)


class AccountService:
    """Creates users and the artist profiles that govern a token"""

    def __init__(self, store: LedgerStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.guard = ReferentialGuard(store)

    def register_user(self, username: str, password: str, is_artist: bool = False,
                      wallet_address: Optional[str] = None, bio: Optional[str] = None,
                      profile_image: Optional[str] = None) -> User:
        registration = parse_input(
            UserRegistration,
            username=username,
            password=password,
            is_artist=is_artist,
            wallet_address=wallet_address,
            bio=bio,
            profile_image=profile_image
        )
        if self.store.get_user_by_username(registration.username):
            raise ValidationError(f"Username {registration.username!r} already exists")

        user = self.store.create_user(
            username=registration.username,
            password_hash=generate_password_hash(registration.password, method=self.settings.PASSWORD_HASH_METHOD),
            is_artist=registration.is_artist,
            wallet_address=registration.wallet_address,
            bio=registration.bio,
            profile_image=registration.profile_image
        )
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def verify_credentials(self, username: str, password: str) -> Optional[User]:
        user = self.store.get_user_by_username(username)
        if user is None or not check_password_hash(user.password_hash, password):
            return None
        return user

    def onboard_artist(self, user_id: int, name: str, token_name: str, token_symbol: str,
                       token_supply: int, artist_share_pct, token_holder_share_pct,
                       treasury_share_pct, genres: Optional[List[str]] = None,
                       location: Optional[str] = None, banner_image: Optional[str] = None,
                       contract_address: Optional[str] = None) -> Artist:
        """
        Create the artist profile for an existing user.

        Raises:
            NotFoundError: unknown user
            ValidationError: malformed profile, user already has an artist
                profile, or shares not totalling 100 while ENFORCE_SHARE_TOTAL is on
        """
        onboarding = parse_input(
            ArtistOnboarding,
            user_id=user_id,
            name=name,
            genres=genres or [],
            location=location,
            banner_image=banner_image,
            token_name=token_name,
            token_symbol=token_symbol,
            token_supply=token_supply,
            artist_share_pct=artist_share_pct,
            token_holder_share_pct=token_holder_share_pct,
            treasury_share_pct=treasury_share_pct,
            contract_address=contract_address
        )
        self.guard.require_user(onboarding.user_id)
        if self.store.get_artist_by_user_id(onboarding.user_id):
            raise ValidationError(f"User {onboarding.user_id} already has an artist profile")

        if onboarding.share_total != SHARE_TOTAL:
            if self.settings.ENFORCE_SHARE_TOTAL:
                raise ValidationError(
                    f"Share percentages must total {SHARE_TOTAL}, got {onboarding.share_total}"
                )
            logger.warning(
                f"Accepting artist {onboarding.name!r} with share total {onboarding.share_total} "
                f"(ENFORCE_SHARE_TOTAL is off)"
            )

        artist = self.store.create_artist(
            user_id=onboarding.user_id,
            name=onboarding.name,
            genres=onboarding.genres,
            location=onboarding.location,
            banner_image=onboarding.banner_image,
            token_name=onboarding.token_name,
            token_symbol=onboarding.token_symbol,
            token_supply=onboarding.token_supply,
            artist_share_pct=onboarding.artist_share_pct,
            token_holder_share_pct=onboarding.token_holder_share_pct,
            treasury_share_pct=onboarding.treasury_share_pct,
            contract_address=onboarding.contract_address
        )
        self.store.set_user_artist_flag(onboarding.user_id)
        logger.info(f"Onboarded artist {artist.id} ({artist.token_symbol}) for user {onboarding.user_id}")
        return artist

    def attach_contract_address(self, artist_id: int, contract_address: str) -> Artist:
        if not contract_address or not contract_address.strip():
            raise ValidationError("contract_address must not be blank")
        self.guard.require_artist(artist_id)
        artist = self.store.update_artist_contract_address(artist_id, contract_address.strip())
        logger.info(f"Attached contract {artist.contract_address} to artist {artist_id}")
        return artist

    def artist_directory(self) -> List[ArtistView]:
        """Every artist with the owning user's public profile fields"""
        artists = self.store.list_artists()
        users = {user.id: user for user in self.store.get_users_by_ids(artist.user_id for artist in artists)}
        return [self._view(artist, users.get(artist.user_id)) for artist in artists]

    def artist_profile(self, artist_id: int) -> ArtistView:
        """
        One artist with the owner's profile and the number of holding rows.

        Raises:
            NotFoundError: unknown artist, or its owning user is missing
        """
        artist = self.guard.require_artist(artist_id)
        user = self.store.get_user(artist.user_id)
        if user is None:
            raise NotFoundError(f"User {artist.user_id} owning artist {artist_id} not found")
        view = self._view(artist, user)
        view.token_distribution = len(self.store.list_artist_holdings(artist_id))
        return view

    @staticmethod
    def _view(artist: Artist, user: Optional[User]) -> ArtistView:
        return ArtistView(
            artist_id=artist.id,
            user_id=artist.user_id,
            name=artist.name,
            genres=list(artist.genres or []),
            location=artist.location,
            banner_image=artist.banner_image,
            token_name=artist.token_name,
            token_symbol=artist.token_symbol,
            token_supply=artist.token_supply,
            artist_share_pct=artist.artist_share_pct,
            token_holder_share_pct=artist.token_holder_share_pct,
            treasury_share_pct=artist.treasury_share_pct,
            contract_address=artist.contract_address,
            username=user.username if user else None,
            bio=user.bio if user else None,
            profile_image=user.profile_image if user else None,
            wallet_address=user.wallet_address if user else None
        )
