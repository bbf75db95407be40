"""GraphQL documents sent to the Storefront API."""

PRODUCT_FRAGMENT = """
fragment ProductFragment on Product {
  id
  handle
  title
  description
  productType
  vendor
  tags
  createdAt
  updatedAt
  availableForSale
  priceRange {
    minVariantPrice { amount currencyCode }
    maxVariantPrice { amount currencyCode }
  }
  compareAtPriceRange {
    minVariantPrice { amount currencyCode }
    maxVariantPrice { amount currencyCode }
  }
  images(first: 10) {
    edges { node { id url altText width height } }
  }
  variants(first: 10) {
    edges {
      node {
        id
        title
        availableForSale
        quantityAvailable
        sku
        selectedOptions { name value }
        price { amount currencyCode }
        compareAtPrice { amount currencyCode }
      }
    }
  }
  collections(first: 10) {
    edges { node { id handle title } }
  }
}
"""

CART_FRAGMENT = """
fragment CartFragment on Cart {
  id
  checkoutUrl
  totalQuantity
  createdAt
  updatedAt
  lines(first: 100) {
    edges {
      node {
        id
        quantity
        merchandise {
          ... on ProductVariant {
            id
            title
            selectedOptions { name value }
            product {
              id
              handle
              title
              featuredImage { id url altText width height }
            }
            price { amount currencyCode }
            compareAtPrice { amount currencyCode }
          }
        }
      }
    }
  }
  cost {
    totalAmount { amount currencyCode }
    subtotalAmount { amount currencyCode }
    totalTaxAmount { amount currencyCode }
  }
}
"""

PAGE_INFO = "pageInfo { hasNextPage hasPreviousPage startCursor endCursor }"

GET_PRODUCTS = (
    """
query getProducts(
  $first: Int, $after: String, $query: String,
  $sortKey: ProductSortKeys, $reverse: Boolean
) {
  products(
    first: $first, after: $after, query: $query,
    sortKey: $sortKey, reverse: $reverse
  ) {
    edges { node { ...ProductFragment } cursor }
    %s
  }
}
"""
    % PAGE_INFO
    + PRODUCT_FRAGMENT
)

GET_PRODUCT = (
    """
query getProduct($handle: String!) {
  product(handle: $handle) { ...ProductFragment }
}
"""
    + PRODUCT_FRAGMENT
)

GET_COLLECTIONS = """
query getCollections($first: Int, $after: String) {
  collections(first: $first, after: $after) {
    edges {
      node {
        id
        handle
        title
        description
        image { id url altText width height }
      }
      cursor
    }
    %s
  }
}
""" % PAGE_INFO

GET_COLLECTION_PRODUCTS = (
    """
query getCollectionProducts(
  $handle: String!, $first: Int, $after: String,
  $sortKey: ProductCollectionSortKeys, $reverse: Boolean
) {
  collection(handle: $handle) {
    id
    handle
    title
    description
    products(first: $first, after: $after, sortKey: $sortKey, reverse: $reverse) {
      edges { node { ...ProductFragment } cursor }
      %s
    }
  }
}
"""
    % PAGE_INFO
    + PRODUCT_FRAGMENT
)

CART_CREATE = (
    """
mutation cartCreate($input: CartInput) {
  cartCreate(input: $input) {
    cart { ...CartFragment }
    userErrors { field message }
  }
}
"""
    + CART_FRAGMENT
)

CART_LINES_ADD = (
    """
mutation cartLinesAdd($cartId: ID!, $lines: [CartLineInput!]!) {
  cartLinesAdd(cartId: $cartId, lines: $lines) {
    cart { ...CartFragment }
    userErrors { field message }
  }
}
"""
    + CART_FRAGMENT
)

CART_LINES_UPDATE = (
    """
mutation cartLinesUpdate($cartId: ID!, $lines: [CartLineUpdateInput!]!) {
  cartLinesUpdate(cartId: $cartId, lines: $lines) {
    cart { ...CartFragment }
    userErrors { field message }
  }
}
"""
    + CART_FRAGMENT
)

CART_LINES_REMOVE = (
    """
mutation cartLinesRemove($cartId: ID!, $lineIds: [ID!]!) {
  cartLinesRemove(cartId: $cartId, lineIds: $lineIds) {
    cart { ...CartFragment }
    userErrors { field message }
  }
}
"""
    + CART_FRAGMENT
)

GET_CART = (
    """
query getCart($cartId: ID!) {
  cart(id: $cartId) { ...CartFragment }
}
"""
    + CART_FRAGMENT
)
