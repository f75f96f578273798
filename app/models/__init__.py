from app.models.user import User, UserPurchasedBook, UserTransaction
from app.models.book import Book
from app.models.transaction import Transaction
from app.models.blacklisted_token import BlacklistedToken

# add ALL models here
